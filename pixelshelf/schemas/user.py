# pixelshelf/schemas/user.py
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from pixelshelf.models.user import SubscriptionTier
from pixelshelf.schemas.common import CamelModel, Pagination


class SocialLinks(CamelModel):
    twitter: Optional[str] = None
    github: Optional[str] = None
    website: Optional[str] = None
    linkedin: Optional[str] = None


class UserSummary(CamelModel):
    id: str
    name: Optional[str] = None
    username: Optional[str] = None
    image: Optional[str] = None


class User(UserSummary):
    """The caller's own account record."""

    email: str
    bio: Optional[str] = None
    location: Optional[str] = None
    banner_image: Optional[str] = None
    social: Optional[SocialLinks] = None
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE
    subscription_start: Optional[datetime] = None
    subscription_end: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileStats(CamelModel):
    assets: int = 0
    projects: int = 0
    followers: int = 0
    following: int = 0


class PublicProfile(UserSummary):
    bio: Optional[str] = None
    banner_image: Optional[str] = None
    location: Optional[str] = None
    social: Optional[SocialLinks] = None
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE
    created_at: Optional[datetime] = None
    stats: ProfileStats
    is_following: bool = False
    is_current_user: bool = False


class FollowListEntry(UserSummary):
    bio: Optional[str] = None
    followed_at: datetime
    is_following: bool = False
    is_current_user: bool = False


class FollowersPage(CamelModel):
    followers: List[FollowListEntry]
    pagination: Pagination


class FollowingPage(CamelModel):
    following: List[FollowListEntry]
    pagination: Pagination


class ProfileUpdateIn(CamelModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[a-zA-Z0-9_]+$")
    name: Optional[str] = Field(None, max_length=120)
    bio: Optional[str] = None
    location: Optional[str] = Field(None, max_length=120)
    image: Optional[str] = None
    banner_image: Optional[str] = None
    social: Optional[SocialLinks] = None
