# pixelshelf/models/user.py
import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pixelshelf.db import Base, new_id, utcnow


class SubscriptionTier(str, enum.Enum):
    FREE = "FREE"
    PREMIUM = "PREMIUM"


class User(Base):
    __tablename__ = "users"

    id:                 Mapped[str]                = mapped_column(String(36), primary_key=True, default=new_id)
    name:               Mapped[Optional[str]]      = mapped_column(String(120))
    username:           Mapped[Optional[str]]      = mapped_column(String(50), unique=True, index=True)
    email:              Mapped[str]                = mapped_column(String(255), unique=True, index=True)
    password_hash:      Mapped[Optional[str]]      = mapped_column(String(255))
    image:              Mapped[Optional[str]]      = mapped_column(Text)
    banner_image:       Mapped[Optional[str]]      = mapped_column(Text)
    bio:                Mapped[Optional[str]]      = mapped_column(Text)
    location:           Mapped[Optional[str]]      = mapped_column(String(120))
    social:             Mapped[Optional[dict]]     = mapped_column(JSON)
    subscription_tier:  Mapped[SubscriptionTier]   = mapped_column(
        Enum(SubscriptionTier, native_enum=False, length=16), default=SubscriptionTier.FREE
    )
    subscription_start: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    subscription_end:   Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at:         Mapped[datetime]           = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at:         Mapped[datetime]           = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Subscription(Base):
    """Billing-provider state for a user; at most one row per user."""

    __tablename__ = "subscriptions"

    id:                        Mapped[str]                = mapped_column(String(36), primary_key=True, default=new_id)
    user_id:                   Mapped[str]                = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True
    )
    stripe_customer_id:        Mapped[Optional[str]]      = mapped_column(String(255), unique=True)
    stripe_subscription_id:    Mapped[Optional[str]]      = mapped_column(String(255), unique=True)
    stripe_price_id:           Mapped[Optional[str]]      = mapped_column(String(255))
    stripe_current_period_end: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at:                Mapped[datetime]           = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at:                Mapped[datetime]           = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
