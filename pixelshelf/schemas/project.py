from datetime import datetime
from typing import List, Optional

from pydantic import Field

from pixelshelf.schemas.asset import AssetOut
from pixelshelf.schemas.common import CamelModel, Pagination
from pixelshelf.schemas.user import UserSummary


class ProjectCreateIn(CamelModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    is_public: bool = False


class ProjectUpdateIn(CamelModel):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    is_public: Optional[bool] = None


class ProjectOut(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    user_id: str
    is_public: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
    user: UserSummary
    likes: int = 0
    asset_count: int = 0


class ProjectDetailOut(ProjectOut):
    assets: List[AssetOut] = []
    liked_by_user: bool = False


class ProjectsPage(CamelModel):
    projects: List[ProjectOut]
    pagination: Pagination
