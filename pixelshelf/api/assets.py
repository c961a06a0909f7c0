from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pixelshelf.core.dependencies import get_current_user, get_optional_user
from pixelshelf.db import get_db
from pixelshelf.models import FileType, User
from pixelshelf.schemas.asset import AssetCreateIn, AssetOut, AssetsPage, AssetUpdateIn, ContentSort
from pixelshelf.schemas.common import SuccessOut
from pixelshelf.services import assets as service
from pixelshelf.utils.cache_decorators import TRENDING_PREFIX, invalidate_cache_pattern
from pixelshelf.utils.pagination import Page, PageParams

router = APIRouter(prefix="/assets", tags=["assets"])


@router.get("", response_model=AssetsPage)
async def list_assets(
    page: Page = Depends(PageParams(default_limit=10)),
    user_id: Optional[str] = Query(None, alias="userId"),
    project_id: Optional[str] = Query(None, alias="projectId"),
    file_type: Optional[FileType] = Query(None, alias="type"),
    search: Optional[str] = None,
    tag: Optional[str] = None,
    sort: ContentSort = "latest",
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await service.list_assets(db, viewer, page, user_id, project_id, file_type, search, tag, sort)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=AssetOut)
@invalidate_cache_pattern(f"{TRENDING_PREFIX}:*")
async def create_asset(
    payload: AssetCreateIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await service.create_asset(db, user, payload)


@router.get("/{asset_id}", response_model=AssetOut)
async def get_asset(
    asset_id: str,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await service.get_asset(db, asset_id, viewer)


@router.patch("/{asset_id}", response_model=AssetOut)
@invalidate_cache_pattern(f"{TRENDING_PREFIX}:*")
async def update_asset(
    asset_id: str,
    payload: AssetUpdateIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await service.update_asset(db, asset_id, user, payload)


@router.delete("/{asset_id}", response_model=SuccessOut)
@invalidate_cache_pattern(f"{TRENDING_PREFIX}:*")
async def delete_asset(
    asset_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await service.delete_asset(db, asset_id, user)
    return SuccessOut()
