from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pixelshelf.core.dependencies import get_current_user, get_optional_user
from pixelshelf.db import get_db
from pixelshelf.models import User as UserRow
from pixelshelf.schemas.user import FollowersPage, FollowingPage, ProfileUpdateIn, PublicProfile, User
from pixelshelf.services import users as service
from pixelshelf.utils.pagination import Page, PageParams

router = APIRouter(prefix="/users", tags=["users"])

follow_page = PageParams(default_limit=10)


# "/profile" is registered before "/{username}" so it is never read as a username
@router.patch("/profile", summary="Update the caller's profile", response_model=User)
async def update_profile_endpoint(
    payload: ProfileUpdateIn,
    current_user: UserRow = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await service.update_profile(db, current_user, payload)


@router.get("/{username}", summary="Public profile with stats", response_model=PublicProfile)
async def read_profile_endpoint(
    username: str,
    viewer: Optional[UserRow] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await service.get_public_profile(db, username, viewer)


@router.get("/{username}/followers", summary="Paginated followers", response_model=FollowersPage)
async def followers_endpoint(
    username: str,
    page: Page = Depends(follow_page),
    viewer: Optional[UserRow] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await service.list_followers(db, username, viewer, page)


@router.get("/{username}/following", summary="Paginated followed accounts", response_model=FollowingPage)
async def following_endpoint(
    username: str,
    page: Page = Depends(follow_page),
    viewer: Optional[UserRow] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await service.list_following(db, username, viewer, page)
