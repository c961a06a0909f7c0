# pixelshelf/models/chat.py
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pixelshelf.db import Base, new_id, utcnow
from pixelshelf.models.user import User


class Chat(Base):
    __tablename__ = "chats"

    id:         Mapped[str]      = mapped_column(String(36), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)


class UserChat(Base):
    __tablename__  = "user_chats"
    __table_args__ = (
        UniqueConstraint("user_id", "chat_id", name="uq_user_chat"),
    )

    id:         Mapped[str]  = mapped_column(String(36), primary_key=True, default=new_id)
    user_id:    Mapped[str]  = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    chat_id:    Mapped[str]  = mapped_column(ForeignKey("chats.id", ondelete="CASCADE"), index=True)
    has_unread: Mapped[bool] = mapped_column(Boolean, default=False)

    user: Mapped[User] = relationship()
    chat: Mapped[Chat] = relationship()


class Message(Base):
    __tablename__ = "messages"

    id:          Mapped[str]      = mapped_column(String(36), primary_key=True, default=new_id)
    chat_id:     Mapped[str]      = mapped_column(ForeignKey("chats.id", ondelete="CASCADE"), index=True)
    sender_id:   Mapped[str]      = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    receiver_id: Mapped[str]      = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    content:     Mapped[str]      = mapped_column(Text)
    read:        Mapped[bool]     = mapped_column(Boolean, default=False)
    created_at:  Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
