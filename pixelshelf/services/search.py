"""Cross-entity search over public assets, public projects and users."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from pixelshelf.db import LIKE_ESCAPE, contains_pattern
from pixelshelf.metrics.prometheus import search_duration, search_requests, track_duration
from pixelshelf.models import Asset, FileType, Follow, Project, User
from pixelshelf.schemas.search import CreatorOut
from pixelshelf.schemas.user import ProfileStats
from pixelshelf.services import assets as asset_service
from pixelshelf.services import projects as project_service
from pixelshelf.utils.pagination import Page, paginate, total_pages

log = logging.getLogger(__name__)


def _dump(model) -> Dict[str, Any]:
    return model.model_dump(by_alias=True, mode="json")


# ─────────────────────────────── creators (shared with trending) ───────────────────────────────
def creator_counts():
    assets = select(func.count(Asset.id)).where(Asset.user_id == User.id).correlate(User).scalar_subquery()
    followers = select(func.count(Follow.id)).where(Follow.following_id == User.id).correlate(User).scalar_subquery()
    following = select(func.count(Follow.id)).where(Follow.follower_id == User.id).correlate(User).scalar_subquery()
    return assets, followers, following


def creators_select():
    assets, followers, following = creator_counts()
    stmt = select(User, assets.label("assets"), followers.label("followers"), following.label("following"))
    return stmt, assets, followers


def to_creator(user: User, assets: int, followers: int, following: int) -> CreatorOut:
    return CreatorOut(
        id=user.id,
        name=user.name,
        username=user.username,
        image=user.image,
        bio=user.bio,
        asset_count=assets,
        follower_count=followers,
        following_count=following,
        stats=ProfileStats(assets=assets, followers=followers, following=following),
    )


# ─────────────────────────────── per-entity searches ───────────────────────────────
async def _search_assets(db, page: Page, q, tag, asset_type, sort):
    filters = [Asset.is_public.is_(True)]
    if q:
        filters.append(asset_service.search_filter(q))
    if tag:
        filters.append(asset_service.tag_filter(tag))
    if asset_type:
        filters.append(Asset.file_type == asset_type)
    total = await db.scalar(select(func.count(Asset.id)).where(*filters))
    stmt, likes = asset_service.counted_assets()
    rows = await db.execute(
        stmt.where(*filters).order_by(*asset_service.order_for(sort, likes)).offset(page.offset).limit(page.limit)
    )
    return [_dump(asset_service.to_out(a, la, ca)) for a, la, ca in rows], total


async def _search_users(db, page: Page, q, tag, sort):
    filters = []
    if q:
        pattern = contains_pattern(q)
        filters.append(or_(*(column.ilike(pattern, escape=LIKE_ESCAPE) for column in (User.name, User.username, User.bio))))
    if tag:
        filters.append(User.id.in_(select(Asset.user_id).where(asset_service.tag_filter(tag))))
    total = await db.scalar(select(func.count(User.id)).where(*filters))
    stmt, _, followers = creators_select()
    if sort == "oldest":
        order = (User.created_at.asc(),)
    elif sort == "popular":
        order = (followers.desc(), User.created_at.desc())
    else:
        order = (User.created_at.desc(),)
    rows = await db.execute(stmt.where(*filters).order_by(*order).offset(page.offset).limit(page.limit))
    return [_dump(to_creator(*row)) for row in rows], total


async def _search_projects(db, page: Page, q, tag, sort):
    filters = [Project.is_public.is_(True)]
    if q:
        filters.append(project_service.search_filter(q))
    if tag:
        filters.append(Project.id.in_(select(Asset.project_id).where(asset_service.tag_filter(tag))))
    total = await db.scalar(select(func.count(Project.id)).where(*filters))
    stmt, likes = project_service.counted_projects()
    if sort == "oldest":
        order = (Project.created_at.asc(),)
    elif sort == "popular":
        order = (likes.desc(), Project.created_at.desc())
    else:
        order = (Project.created_at.desc(),)
    rows = await db.execute(stmt.where(*filters).order_by(*order).offset(page.offset).limit(page.limit))
    return [_dump(project_service.to_out(p, lp, ap)) for p, lp, ap in rows], total


async def search(
    db: AsyncSession,
    page: Page,
    q: Optional[str] = None,
    type: str = "all",
    tag: Optional[str] = None,
    asset_type: Optional[FileType] = None,
    sort: str = "latest",
) -> Dict[str, Any]:
    """Fan out to the per-entity searches selected by ``type``.

    For ``type=all`` the total is the sum over every entity and pages are
    sized as if each page showed ``limit`` items of each of the three kinds.
    """
    search_requests.labels(search_type=type).inc()
    results: Dict[str, Any] = {}
    total = 0
    with track_duration(search_duration, {"search_type": type}):
        if type in ("all", "assets"):
            results["assets"], count = await _search_assets(db, page, q, tag, asset_type, sort)
            total += count
        if type in ("all", "users"):
            results["users"], count = await _search_users(db, page, q, tag, sort)
            total += count
        if type in ("all", "projects"):
            results["projects"], count = await _search_projects(db, page, q, tag, sort)
            total += count

    if type == "all":
        pages = max(math.ceil(total / (page.limit * 3)), 1)
    else:
        pages = total_pages(total, page.limit)
    results["pagination"] = _dump(paginate(page.page, page.limit, total, pages))
    return results
