# pixelshelf/schemas/asset.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import AnyHttpUrl, Field

from pixelshelf.models.content import FileType
from pixelshelf.schemas.common import CamelModel, Pagination
from pixelshelf.schemas.user import UserSummary

ContentSort = Literal["latest", "oldest", "popular"]


class ProjectRef(CamelModel):
    id: str
    title: str


class AssetCreateIn(CamelModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    file_url: AnyHttpUrl
    file_type: FileType
    project_id: Optional[str] = None
    is_public: bool = True
    tags: Optional[List[str]] = None


class AssetUpdateIn(CamelModel):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = None
    project_id: Optional[str] = None
    is_public: Optional[bool] = None
    tags: Optional[List[str]] = None


class AssetOut(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    file_url: str
    file_type: FileType
    project_id: Optional[str] = None
    user_id: str
    is_public: bool
    tags: List[str] = []
    created_at: datetime
    updated_at: Optional[datetime] = None
    user: UserSummary
    project: Optional[ProjectRef] = None
    likes: int = 0
    comments: int = 0
    liked_by_user: Optional[bool] = None


class AssetsPage(CamelModel):
    assets: List[AssetOut]
    pagination: Pagination
