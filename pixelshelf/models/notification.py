# pixelshelf/models/notification.py
import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, Enum, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pixelshelf.db import Base, new_id, utcnow
from pixelshelf.models.user import User


class NotificationType(str, enum.Enum):
    FOLLOW = "FOLLOW"
    LIKE = "LIKE"
    COMMENT = "COMMENT"
    MESSAGE = "MESSAGE"
    SYSTEM = "SYSTEM"


class Notification(Base):
    __tablename__  = "notifications"
    __table_args__ = (
        Index("ix_notifications_receiver_read", "receiver_id", "read"),
    )

    id:          Mapped[str]              = mapped_column(String(36), primary_key=True, default=new_id)
    type:        Mapped[NotificationType] = mapped_column(Enum(NotificationType, native_enum=False, length=16))
    content:     Mapped[str]              = mapped_column(Text)
    link_url:    Mapped[Optional[str]]    = mapped_column(Text)
    read:        Mapped[bool]             = mapped_column(Boolean, default=False)
    archived:    Mapped[bool]             = mapped_column(Boolean, default=False)
    receiver_id: Mapped[str]              = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    sender_id:   Mapped[Optional[str]]    = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    created_at:  Mapped[datetime]         = mapped_column(DateTime(timezone=True), default=utcnow, index=True)

    sender: Mapped[Optional[User]] = relationship(foreign_keys=[sender_id])


class NotificationPreferences(Base):
    __tablename__ = "notification_preferences"

    id:         Mapped[str]      = mapped_column(String(36), primary_key=True, default=new_id)
    user_id:    Mapped[str]      = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True)
    email:      Mapped[dict]     = mapped_column(JSON)
    push:       Mapped[dict]     = mapped_column(JSON)
    in_app:     Mapped[dict]     = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
