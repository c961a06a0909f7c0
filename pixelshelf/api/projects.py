from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pixelshelf.core.dependencies import get_current_user, get_optional_user
from pixelshelf.db import get_db
from pixelshelf.models import User
from pixelshelf.schemas.asset import ContentSort
from pixelshelf.schemas.common import SuccessOut
from pixelshelf.schemas.project import ProjectCreateIn, ProjectDetailOut, ProjectOut, ProjectsPage, ProjectUpdateIn
from pixelshelf.services import projects as service
from pixelshelf.utils.cache_decorators import TRENDING_PREFIX, invalidate_cache_pattern
from pixelshelf.utils.pagination import Page, PageParams

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=ProjectsPage)
async def list_projects(
    page: Page = Depends(PageParams(default_limit=10)),
    user_id: Optional[str] = Query(None, alias="userId"),
    username: Optional[str] = None,
    search: Optional[str] = None,
    sort: ContentSort = "latest",
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Projects visible to the caller: public ones plus the caller's own.
    """
    return await service.list_projects(db, viewer, page, user_id, username, search, sort)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ProjectOut)
@invalidate_cache_pattern(f"{TRENDING_PREFIX}:*")
async def create_project(
    payload: ProjectCreateIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await service.create_project(db, user, payload)


@router.get("/{project_id}", response_model=ProjectDetailOut)
async def get_project(
    project_id: str,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await service.get_project(db, project_id, viewer)


@router.patch("/{project_id}", response_model=ProjectOut)
@invalidate_cache_pattern(f"{TRENDING_PREFIX}:*")
async def update_project(
    project_id: str,
    payload: ProjectUpdateIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await service.update_project(db, project_id, user, payload)


@router.delete("/{project_id}", response_model=SuccessOut)
@invalidate_cache_pattern(f"{TRENDING_PREFIX}:*")
async def delete_project(
    project_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await service.delete_project(db, project_id, user)
    return SuccessOut()
