"""Public profiles, follower listings and profile updates."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pixelshelf.models import Asset, Follow, Project, User
from pixelshelf.schemas.user import (
    FollowersPage,
    FollowingPage,
    FollowListEntry,
    ProfileStats,
    ProfileUpdateIn,
    PublicProfile,
)
from pixelshelf.services.follows import followed_ids, is_following
from pixelshelf.utils.pagination import Page

log = logging.getLogger(__name__)


async def get_by_username(db: AsyncSession, username: str) -> User:
    user = await db.scalar(select(User).where(User.username == username))
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


async def profile_stats(db: AsyncSession, user_id: str) -> ProfileStats:
    async def count(column, value):
        return await db.scalar(select(func.count()).where(column == value))

    return ProfileStats(
        assets=await count(Asset.user_id, user_id),
        projects=await count(Project.user_id, user_id),
        followers=await count(Follow.following_id, user_id),
        following=await count(Follow.follower_id, user_id),
    )


async def get_public_profile(db: AsyncSession, username: str, viewer: Optional[User]) -> PublicProfile:
    user = await get_by_username(db, username)
    is_current_user = viewer is not None and viewer.id == user.id
    following = False
    if viewer is not None and not is_current_user:
        following = await is_following(db, viewer.id, user.id)

    return PublicProfile(
        id=user.id,
        name=user.name,
        username=user.username,
        image=user.image,
        bio=user.bio,
        banner_image=user.banner_image,
        location=user.location,
        social=user.social,
        subscription_tier=user.subscription_tier,
        created_at=user.created_at,
        stats=await profile_stats(db, user.id),
        is_following=following,
        is_current_user=is_current_user,
    )


async def _follow_page(db: AsyncSession, username: str, viewer: Optional[User], page: Page, followers: bool):
    user = await get_by_username(db, username)
    # followers: rows pointing at the user; following: rows the user created
    anchor = Follow.following_id if followers else Follow.follower_id
    other = Follow.follower if followers else Follow.following

    total = await db.scalar(select(func.count(Follow.id)).where(anchor == user.id))
    rows = list(
        await db.scalars(
            select(Follow)
            .options(selectinload(other))
            .where(anchor == user.id)
            .order_by(Follow.created_at.desc())
            .offset(page.offset)
            .limit(page.limit)
        )
    )
    people = [row.follower if followers else row.following for row in rows]
    viewer_id = viewer.id if viewer else None
    followed = await followed_ids(db, viewer_id, [p.id for p in people])

    entries = [
        FollowListEntry(
            id=person.id,
            name=person.name,
            username=person.username,
            image=person.image,
            bio=person.bio,
            followed_at=row.created_at,
            is_following=person.id in followed,
            is_current_user=person.id == viewer_id,
        )
        for row, person in zip(rows, people)
    ]
    return entries, page.pagination(total)


async def list_followers(db: AsyncSession, username: str, viewer: Optional[User], page: Page) -> FollowersPage:
    entries, pagination = await _follow_page(db, username, viewer, page, followers=True)
    return FollowersPage(followers=entries, pagination=pagination)


async def list_following(db: AsyncSession, username: str, viewer: Optional[User], page: Page) -> FollowingPage:
    entries, pagination = await _follow_page(db, username, viewer, page, followers=False)
    return FollowingPage(following=entries, pagination=pagination)


async def update_profile(db: AsyncSession, user: User, payload: ProfileUpdateIn) -> User:
    taken = await db.scalar(select(User.id).where(User.username == payload.username, User.id != user.id))
    if taken:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username is already taken")

    changes = payload.model_dump(exclude_unset=True)
    if "social" in changes and payload.social is not None:
        changes["social"] = payload.social.model_dump(exclude_none=True)
    for field, value in changes.items():
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    log.info(f"Updated profile for user {user.id}")
    return user
