from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pixelshelf.core.dependencies import get_current_user, get_optional_user
from pixelshelf.db import get_db
from pixelshelf.models import User
from pixelshelf.schemas.comment import CommentCreateIn, CommentOut, CommentSort, CommentsPage, CommentUpdateIn
from pixelshelf.schemas.common import SuccessOut
from pixelshelf.services import comments as service
from pixelshelf.utils.cache_decorators import TRENDING_PREFIX, invalidate_cache_pattern
from pixelshelf.utils.pagination import Page, PageParams

router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("", response_model=CommentsPage)
async def list_comments(
    asset_id: str = Query(..., alias="assetId", min_length=1),
    sort: CommentSort = Query("latest"),
    page: Page = Depends(PageParams(default_limit=10)),
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Top-level comments on an asset, each with its replies oldest first.
    """
    return await service.list_comments(db, asset_id, viewer, page, sort)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=CommentOut)
@invalidate_cache_pattern(f"{TRENDING_PREFIX}:*")
async def create_comment(
    payload: CommentCreateIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await service.create_comment(db, user, payload)


@router.patch("/{comment_id}", response_model=CommentOut)
async def update_comment(
    comment_id: str,
    payload: CommentUpdateIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await service.update_comment(db, comment_id, user, payload)


@router.delete("/{comment_id}", response_model=SuccessOut)
@invalidate_cache_pattern(f"{TRENDING_PREFIX}:*")
async def delete_comment(
    comment_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete a comment and its replies. Allowed for the author and the asset owner.
    """
    await service.delete_comment(db, comment_id, user)
    return SuccessOut()
