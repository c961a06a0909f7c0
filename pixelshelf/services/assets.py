"""Asset CRUD with engagement counts."""

from __future__ import annotations

import json
import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import String, cast, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pixelshelf.db import LIKE_ESCAPE, contains_pattern
from pixelshelf.models import Asset, Comment, FileType, Like, Project, User
from pixelshelf.schemas.asset import AssetCreateIn, AssetOut, AssetsPage, AssetUpdateIn
from pixelshelf.utils.pagination import Page

log = logging.getLogger(__name__)


# ───────────────────────────────────────── query helpers ────────────────────────────────────
def likes_count():
    return select(func.count(Like.id)).where(Like.asset_id == Asset.id).correlate(Asset).scalar_subquery()


def comments_count():
    return select(func.count(Comment.id)).where(Comment.asset_id == Asset.id).correlate(Asset).scalar_subquery()


def tag_filter(tag: str):
    """Match a whole tag inside the JSON ``tags`` array, portable across SQLite and Postgres."""
    needle = json.dumps(tag, ensure_ascii=False)
    return cast(Asset.tags, String).like(contains_pattern(needle), escape=LIKE_ESCAPE)


def search_filter(term: str):
    pattern = contains_pattern(term)
    return or_(Asset.title.ilike(pattern, escape=LIKE_ESCAPE), Asset.description.ilike(pattern, escape=LIKE_ESCAPE))


def visible_to(viewer_id: Optional[str]):
    if viewer_id:
        return or_(Asset.is_public.is_(True), Asset.user_id == viewer_id)
    return Asset.is_public.is_(True)


def order_for(sort: str, likes):
    if sort == "oldest":
        return (Asset.created_at.asc(),)
    if sort == "popular":
        return (likes.desc(), Asset.created_at.desc())
    return (Asset.created_at.desc(),)


def counted_assets():
    """``SELECT asset, likes, comments`` with the user and project summaries eager-loaded."""
    likes, comments = likes_count(), comments_count()
    stmt = (
        select(Asset, likes.label("likes"), comments.label("comments"))
        .options(selectinload(Asset.user), selectinload(Asset.project))
        .execution_options(populate_existing=True)
    )
    return stmt, likes


def to_out(asset: Asset, likes: int = 0, comments: int = 0, liked_by_user: Optional[bool] = None) -> AssetOut:
    return AssetOut.model_validate(asset).model_copy(
        update={"likes": likes or 0, "comments": comments or 0, "liked_by_user": liked_by_user}
    )


async def has_liked(db: AsyncSession, user_id: Optional[str], asset_id: str) -> bool:
    if not user_id:
        return False
    return await db.scalar(select(Like.id).where(Like.user_id == user_id, Like.asset_id == asset_id)) is not None


async def _owned_project(db: AsyncSession, project_id: str, user: User) -> Project:
    project = await db.get(Project, project_id)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    if project.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to add assets to this project",
        )
    return project


async def _get_owned(db: AsyncSession, asset_id: str, user: User, action: str) -> Asset:
    asset = await db.get(Asset, asset_id)
    if asset is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Asset not found")
    if asset.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You do not have permission to {action} this asset",
        )
    return asset


# ───────────────────────────────────────── operations ───────────────────────────────────────
async def list_assets(
    db: AsyncSession,
    viewer: Optional[User],
    page: Page,
    user_id: Optional[str] = None,
    project_id: Optional[str] = None,
    file_type: Optional[FileType] = None,
    search: Optional[str] = None,
    tag: Optional[str] = None,
    sort: str = "latest",
) -> AssetsPage:
    filters = [visible_to(viewer.id if viewer else None)]
    if user_id:
        filters.append(Asset.user_id == user_id)
    if project_id:
        filters.append(Asset.project_id == project_id)
    if file_type:
        filters.append(Asset.file_type == file_type)
    if tag:
        filters.append(tag_filter(tag))
    if search:
        filters.append(search_filter(search))

    total = await db.scalar(select(func.count(Asset.id)).where(*filters))
    stmt, likes = counted_assets()
    rows = await db.execute(
        stmt.where(*filters).order_by(*order_for(sort, likes)).offset(page.offset).limit(page.limit)
    )
    return AssetsPage(
        assets=[to_out(asset, n_likes, n_comments) for asset, n_likes, n_comments in rows],
        pagination=page.pagination(total),
    )


async def get_asset(db: AsyncSession, asset_id: str, viewer: Optional[User]) -> AssetOut:
    stmt, _ = counted_assets()
    row = (await db.execute(stmt.where(Asset.id == asset_id))).first()
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Asset not found")
    asset, n_likes, n_comments = row
    if not asset.is_public and (viewer is None or viewer.id != asset.user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This asset is private")
    liked = await has_liked(db, viewer.id if viewer else None, asset.id)
    return to_out(asset, n_likes, n_comments, liked_by_user=liked)


async def create_asset(db: AsyncSession, user: User, payload: AssetCreateIn) -> AssetOut:
    if payload.project_id:
        await _owned_project(db, payload.project_id, user)
    asset = Asset(
        title=payload.title,
        description=payload.description or "",
        file_url=str(payload.file_url),
        file_type=payload.file_type,
        project_id=payload.project_id or None,
        is_public=payload.is_public,
        tags=payload.tags or [],
        user_id=user.id,
    )
    db.add(asset)
    await db.commit()
    log.info(f"User {user.id} created asset {asset.id}")
    return await get_asset(db, asset.id, user)


async def update_asset(db: AsyncSession, asset_id: str, user: User, payload: AssetUpdateIn) -> AssetOut:
    asset = await _get_owned(db, asset_id, user, "update")
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("project_id"):
        await _owned_project(db, changes["project_id"], user)
    for field, value in changes.items():
        if field in ("title", "is_public") and value is None:
            continue
        setattr(asset, field, value if field != "tags" else (value or []))
    await db.commit()
    return await get_asset(db, asset.id, user)


async def delete_asset(db: AsyncSession, asset_id: str, user: User) -> None:
    asset = await _get_owned(db, asset_id, user, "delete")
    await db.execute(delete(Like).where(Like.asset_id == asset.id))
    await db.execute(delete(Comment).where(Comment.asset_id == asset.id))
    await db.execute(delete(Asset).where(Asset.id == asset.id))
    await db.commit()
    log.info(f"User {user.id} deleted asset {asset_id}")
