# pixelshelf/models/follow.py
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pixelshelf.db import Base, new_id, utcnow
from pixelshelf.models.user import User


class Follow(Base):
    __tablename__  = "follows"
    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follower_following"),
        CheckConstraint("follower_id <> following_id", name="ck_no_self_follow"),
    )

    id:           Mapped[str]      = mapped_column(String(36), primary_key=True, default=new_id)
    follower_id:  Mapped[str]      = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    following_id: Mapped[str]      = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    created_at:   Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    follower:  Mapped[User] = relationship(foreign_keys=[follower_id])
    following: Mapped[User] = relationship(foreign_keys=[following_id])
