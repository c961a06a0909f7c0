"""Trending feeds ranked by engagement counts."""

from __future__ import annotations

from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from pixelshelf.models import Asset, Project
from pixelshelf.services import assets as asset_service
from pixelshelf.services import projects as project_service
from pixelshelf.services.search import creators_select, to_creator


def _dump(model) -> Dict[str, Any]:
    return model.model_dump(by_alias=True, mode="json")


async def trending_assets(db: AsyncSession, limit: int):
    stmt, likes = asset_service.counted_assets()
    comments = asset_service.comments_count()
    rows = await db.execute(
        stmt.where(Asset.is_public.is_(True))
        .order_by(likes.desc(), comments.desc(), Asset.created_at.desc())
        .limit(limit)
    )
    return [_dump(asset_service.to_out(a, la, ca)) for a, la, ca in rows]


async def trending_creators(db: AsyncSession, limit: int):
    stmt, assets, followers = creators_select()
    rows = await db.execute(stmt.order_by(followers.desc(), assets.desc()).limit(limit))
    return [_dump(to_creator(*row)) for row in rows]


async def trending_projects(db: AsyncSession, limit: int):
    stmt, likes = project_service.counted_projects()
    rows = await db.execute(
        stmt.where(Project.is_public.is_(True))
        .order_by(likes.desc(), project_service.asset_count().desc(), Project.created_at.desc())
        .limit(limit)
    )
    return [_dump(project_service.to_out(p, lp, ap)) for p, lp, ap in rows]


async def trending(db: AsyncSession, type: str = "assets", limit: int = 10) -> Dict[str, Any]:
    results: Dict[str, Any] = {}
    if type in ("all", "assets"):
        results["assets"] = await trending_assets(db, limit)
    if type in ("all", "creators"):
        results["creators"] = await trending_creators(db, limit)
    if type in ("all", "projects"):
        results["projects"] = await trending_projects(db, limit)
    return results
