from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from pixelshelf.schemas.common import CamelModel, Pagination
from pixelshelf.schemas.user import UserSummary

CommentSort = Literal["latest", "oldest"]


class CommentCreateIn(CamelModel):
    asset_id: str
    content: str = Field(..., min_length=1, max_length=500)
    parent_id: Optional[str] = None


class CommentUpdateIn(CamelModel):
    content: str = Field(..., min_length=1, max_length=500)


class CommentOut(CamelModel):
    id: str
    content: str
    user_id: str
    asset_id: str
    parent_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    user: UserSummary


class CommentThread(CommentOut):
    replies: List[CommentOut] = []


class CommentsPage(CamelModel):
    comments: List[CommentThread]
    pagination: Pagination
