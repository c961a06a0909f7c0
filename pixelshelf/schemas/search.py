from typing import Literal, Optional

from pixelshelf.schemas.common import CamelModel
from pixelshelf.schemas.user import ProfileStats, UserSummary

SearchType = Literal["assets", "projects", "users", "all"]
TrendingType = Literal["assets", "creators", "projects", "all"]


class CreatorOut(UserSummary):
    bio: Optional[str] = None
    asset_count: int = 0
    follower_count: int = 0
    following_count: int = 0
    stats: ProfileStats
