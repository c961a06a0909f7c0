from datetime import datetime
from typing import Literal

from pydantic import Field

from pixelshelf.schemas.common import CamelModel
from pixelshelf.schemas.user import UserSummary


class FollowIn(CamelModel):
    target_user_id: str = Field(..., min_length=1)


class FollowOut(CamelModel):
    id: str
    follower_id: str
    following_id: str
    created_at: datetime
    follower: UserSummary
    following: UserSummary


class UnfollowOut(CamelModel):
    success: bool = True
    unfollowed: str


class FollowStatusOut(CamelModel):
    is_following: bool


class FollowCountOut(CamelModel):
    count: int


FollowCountType = Literal["followers", "following"]
