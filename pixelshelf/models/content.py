# pixelshelf/models/content.py
import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pixelshelf.db import Base, new_id, utcnow
from pixelshelf.models.user import User


class FileType(str, enum.Enum):
    IMAGE = "IMAGE"
    MODEL_3D = "MODEL_3D"
    AUDIO = "AUDIO"
    VIDEO = "VIDEO"
    DOCUMENT = "DOCUMENT"
    OTHER = "OTHER"


class Project(Base):
    __tablename__ = "projects"

    id:          Mapped[str]           = mapped_column(String(36), primary_key=True, default=new_id)
    title:       Mapped[str]           = mapped_column(String(200))
    description: Mapped[Optional[str]] = mapped_column(Text, default="")
    thumbnail:   Mapped[Optional[str]] = mapped_column(Text)
    user_id:     Mapped[str]           = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    is_public:   Mapped[bool]          = mapped_column(Boolean, default=False)
    created_at:  Mapped[datetime]      = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at:  Mapped[datetime]      = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user: Mapped[User] = relationship()


class Asset(Base):
    __tablename__ = "assets"

    id:          Mapped[str]            = mapped_column(String(36), primary_key=True, default=new_id)
    title:       Mapped[str]            = mapped_column(String(200))
    description: Mapped[Optional[str]]  = mapped_column(Text, default="")
    file_url:    Mapped[str]            = mapped_column(Text)
    file_type:   Mapped[FileType]       = mapped_column(Enum(FileType, native_enum=False, length=16))
    project_id:  Mapped[Optional[str]]  = mapped_column(ForeignKey("projects.id", ondelete="SET NULL"), index=True)
    user_id:     Mapped[str]            = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    is_public:   Mapped[bool]           = mapped_column(Boolean, default=True)
    tags:        Mapped[List[str]]      = mapped_column(JSON, default=list)
    created_at:  Mapped[datetime]       = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at:  Mapped[datetime]       = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user:    Mapped[User]              = relationship()
    project: Mapped[Optional[Project]] = relationship()


class Like(Base):
    __tablename__  = "likes"
    __table_args__ = (
        UniqueConstraint("user_id", "asset_id", name="uq_like_user_asset"),
        UniqueConstraint("user_id", "project_id", name="uq_like_user_project"),
        CheckConstraint(
            "(asset_id IS NULL) <> (project_id IS NULL)", name="ck_like_single_target"
        ),
    )

    id:         Mapped[str]           = mapped_column(String(36), primary_key=True, default=new_id)
    user_id:    Mapped[str]           = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    asset_id:   Mapped[Optional[str]] = mapped_column(ForeignKey("assets.id", ondelete="CASCADE"), index=True)
    project_id: Mapped[Optional[str]] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), index=True)
    created_at: Mapped[datetime]      = mapped_column(DateTime(timezone=True), default=utcnow)


class Comment(Base):
    __tablename__ = "comments"

    id:         Mapped[str]           = mapped_column(String(36), primary_key=True, default=new_id)
    content:    Mapped[str]           = mapped_column(String(500))
    user_id:    Mapped[str]           = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    asset_id:   Mapped[str]           = mapped_column(ForeignKey("assets.id", ondelete="CASCADE"), index=True)
    parent_id:  Mapped[Optional[str]] = mapped_column(ForeignKey("comments.id", ondelete="CASCADE"), index=True)
    created_at: Mapped[datetime]      = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime]      = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user:    Mapped[User]            = relationship()
    asset:   Mapped[Asset]           = relationship()
    replies: Mapped[List["Comment"]] = relationship(order_by="Comment.created_at")
