"""Threaded comments on assets (one level of replies)."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pixelshelf.models import Asset, Comment, User
from pixelshelf.schemas.comment import (
    CommentCreateIn,
    CommentOut,
    CommentsPage,
    CommentThread,
    CommentUpdateIn,
)
from pixelshelf.services import notifications
from pixelshelf.utils.pagination import Page

log = logging.getLogger(__name__)


async def _visible_asset(db: AsyncSession, asset_id: str, viewer: Optional[User]) -> Asset:
    asset = await db.get(Asset, asset_id)
    if asset is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Asset not found")
    if not asset.is_public and (viewer is None or viewer.id != asset.user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to view this asset",
        )
    return asset


async def _load(db: AsyncSession, comment_id: str) -> Optional[Comment]:
    return await db.scalar(
        select(Comment)
        .options(selectinload(Comment.user), selectinload(Comment.asset))
        .where(Comment.id == comment_id)
        .execution_options(populate_existing=True)
    )


async def list_comments(
    db: AsyncSession, asset_id: str, viewer: Optional[User], page: Page, sort: str = "latest"
) -> CommentsPage:
    await _visible_asset(db, asset_id, viewer)
    top_level = [Comment.asset_id == asset_id, Comment.parent_id.is_(None)]
    total = await db.scalar(select(func.count(Comment.id)).where(*top_level))
    order = Comment.created_at.asc() if sort == "oldest" else Comment.created_at.desc()
    rows = await db.scalars(
        select(Comment)
        .options(
            selectinload(Comment.user),
            selectinload(Comment.replies).selectinload(Comment.user),
        )
        .where(*top_level)
        .order_by(order)
        .offset(page.offset)
        .limit(page.limit)
    )
    return CommentsPage(
        comments=[CommentThread.model_validate(c) for c in rows],
        pagination=page.pagination(total),
    )


async def create_comment(db: AsyncSession, user: User, payload: CommentCreateIn) -> CommentOut:
    asset = await _visible_asset(db, payload.asset_id, user)

    parent_id, parent_author_id = None, None
    if payload.parent_id:
        parent = await db.get(Comment, payload.parent_id)
        if parent is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Parent comment not found")
        if parent.asset_id != asset.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Parent comment does not belong to this asset",
            )
        # replies to a reply join the top-level thread
        parent_id = parent.parent_id or parent.id
        parent_author_id = parent.user_id

    comment = Comment(content=payload.content, user_id=user.id, asset_id=asset.id, parent_id=parent_id)
    db.add(comment)
    await db.flush()
    created = await notifications.notify_comment(db, user.id, asset, parent_author_id)
    await db.commit()
    await notifications.publish(db, created)
    return CommentOut.model_validate(await _load(db, comment.id))


async def update_comment(db: AsyncSession, comment_id: str, user: User, payload: CommentUpdateIn) -> CommentOut:
    comment = await db.get(Comment, comment_id)
    if comment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    if comment.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to update this comment",
        )
    comment.content = payload.content
    await db.commit()
    return CommentOut.model_validate(await _load(db, comment.id))


async def delete_comment(db: AsyncSession, comment_id: str, user: User) -> None:
    """Allowed for the comment's author and for the owner of the asset it sits on."""
    comment = await _load(db, comment_id)
    if comment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    if user.id not in (comment.user_id, comment.asset.user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to delete this comment",
        )
    await db.execute(delete(Comment).where(Comment.parent_id == comment.id))
    await db.execute(delete(Comment).where(Comment.id == comment.id))
    await db.commit()
    log.info(f"User {user.id} deleted comment {comment_id}")
