"""Project CRUD, free-tier limits and project pages."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pixelshelf.core.config import settings
from pixelshelf.db import LIKE_ESCAPE, contains_pattern
from pixelshelf.models import Asset, Like, Project, SubscriptionTier, User
from pixelshelf.schemas.project import (
    ProjectCreateIn,
    ProjectDetailOut,
    ProjectOut,
    ProjectsPage,
    ProjectUpdateIn,
)
from pixelshelf.services import assets as asset_service
from pixelshelf.utils.pagination import Page

log = logging.getLogger(__name__)


def likes_count():
    return select(func.count(Like.id)).where(Like.project_id == Project.id).correlate(Project).scalar_subquery()


def asset_count():
    return select(func.count(Asset.id)).where(Asset.project_id == Project.id).correlate(Project).scalar_subquery()


def search_filter(term: str):
    pattern = contains_pattern(term)
    return or_(Project.title.ilike(pattern, escape=LIKE_ESCAPE), Project.description.ilike(pattern, escape=LIKE_ESCAPE))


def visible_to(viewer_id: Optional[str]):
    if viewer_id:
        return or_(Project.is_public.is_(True), Project.user_id == viewer_id)
    return Project.is_public.is_(True)


def counted_projects():
    likes = likes_count()
    stmt = (
        select(Project, likes.label("likes"), asset_count().label("asset_count"))
        .options(selectinload(Project.user))
        .execution_options(populate_existing=True)
    )
    return stmt, likes


def to_out(project: Project, likes: int = 0, assets: int = 0) -> ProjectOut:
    return ProjectOut.model_validate(project).model_copy(
        update={"likes": likes or 0, "asset_count": assets or 0}
    )


async def _get_owned(db: AsyncSession, project_id: str, user: User, action: str) -> Project:
    project = await db.get(Project, project_id)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    if project.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You do not have permission to {action} this project",
        )
    return project


async def list_projects(
    db: AsyncSession,
    viewer: Optional[User],
    page: Page,
    user_id: Optional[str] = None,
    username: Optional[str] = None,
    search: Optional[str] = None,
    sort: str = "latest",
) -> ProjectsPage:
    filters = [visible_to(viewer.id if viewer else None)]
    if user_id:
        filters.append(Project.user_id == user_id)
    if username:
        owner_id = await db.scalar(select(User.id).where(User.username == username))
        if owner_id is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        filters.append(Project.user_id == owner_id)
    if search:
        filters.append(search_filter(search))

    total = await db.scalar(select(func.count(Project.id)).where(*filters))
    stmt, likes = counted_projects()
    if sort == "oldest":
        order = (Project.created_at.asc(),)
    elif sort == "popular":
        order = (likes.desc(), Project.created_at.desc())
    else:
        order = (Project.created_at.desc(),)
    rows = await db.execute(stmt.where(*filters).order_by(*order).offset(page.offset).limit(page.limit))
    return ProjectsPage(
        projects=[to_out(project, n_likes, n_assets) for project, n_likes, n_assets in rows],
        pagination=page.pagination(total),
    )


async def get_project(db: AsyncSession, project_id: str, viewer: Optional[User]) -> ProjectDetailOut:
    stmt, _ = counted_projects()
    row = (await db.execute(stmt.where(Project.id == project_id))).first()
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    project, n_likes, n_assets = row
    viewer_id = viewer.id if viewer else None
    if not project.is_public and viewer_id != project.user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This project is private")

    asset_stmt, _ = asset_service.counted_assets()
    asset_rows = await db.execute(
        asset_stmt.where(Asset.project_id == project.id, asset_service.visible_to(viewer_id))
        .order_by(Asset.created_at.desc())
    )
    liked = False
    if viewer_id:
        liked = await db.scalar(
            select(Like.id).where(Like.user_id == viewer_id, Like.project_id == project.id)
        ) is not None

    base = to_out(project, n_likes, n_assets)
    return ProjectDetailOut(
        **base.model_dump(),
        assets=[asset_service.to_out(a, la, ca) for a, la, ca in asset_rows],
        liked_by_user=liked,
    )


async def create_project(db: AsyncSession, user: User, payload: ProjectCreateIn) -> ProjectOut:
    if user.subscription_tier == SubscriptionTier.FREE:
        owned = await db.scalar(select(func.count(Project.id)).where(Project.user_id == user.id))
        if owned >= settings.free_tier_project_limit:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=(
                    f"Free tier limit reached: you can create up to {settings.free_tier_project_limit} "
                    "projects. Upgrade to Premium to create unlimited projects."
                ),
            )
    project = Project(
        title=payload.title,
        description=payload.description or "",
        thumbnail=payload.thumbnail,
        is_public=payload.is_public,
        user_id=user.id,
    )
    db.add(project)
    await db.commit()
    log.info(f"User {user.id} created project {project.id}")
    stmt, _ = counted_projects()
    project, n_likes, n_assets = (await db.execute(stmt.where(Project.id == project.id))).one()
    return to_out(project, n_likes, n_assets)


async def update_project(db: AsyncSession, project_id: str, user: User, payload: ProjectUpdateIn) -> ProjectOut:
    project = await _get_owned(db, project_id, user, "update")
    for field, value in payload.model_dump(exclude_unset=True).items():
        if field in ("title", "is_public") and value is None:
            continue
        setattr(project, field, value)
    await db.commit()
    stmt, _ = counted_projects()
    project, n_likes, n_assets = (await db.execute(stmt.where(Project.id == project.id))).one()
    return to_out(project, n_likes, n_assets)


async def delete_project(db: AsyncSession, project_id: str, user: User) -> None:
    project = await _get_owned(db, project_id, user, "delete")
    await db.execute(update(Asset).where(Asset.project_id == project.id).values(project_id=None))
    await db.execute(delete(Like).where(Like.project_id == project.id))
    await db.execute(delete(Project).where(Project.id == project.id))
    await db.commit()
    log.info(f"User {user.id} deleted project {project_id}")
