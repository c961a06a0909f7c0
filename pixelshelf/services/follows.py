"""User follow graph: follow, unfollow, status and counts."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Set

from fastapi import HTTPException, status
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pixelshelf.metrics.prometheus import track_follow
from pixelshelf.models import Follow, User
from pixelshelf.schemas.follow import FollowOut
from pixelshelf.schemas.user import UserSummary
from pixelshelf.services import notifications

log = logging.getLogger(__name__)

__all__ = [
    "follow_user",
    "unfollow_user",
    "is_following",
    "followed_ids",
    "count_follows",
    "require_user",
]

ALREADY_FOLLOWING = "You are already following this user"


async def require_user(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


async def is_following(db: AsyncSession, follower_id: str, following_id: str) -> bool:
    """Return ``True`` if ``follower_id`` follows ``following_id``."""
    found = await db.scalar(
        select(Follow.id).where(Follow.follower_id == follower_id, Follow.following_id == following_id)
    )
    return found is not None


async def followed_ids(db: AsyncSession, follower_id: Optional[str], candidates: Iterable[str]) -> Set[str]:
    """Subset of ``candidates`` that ``follower_id`` follows."""
    candidates = list(candidates)
    if not follower_id or not candidates:
        return set()
    rows = await db.scalars(
        select(Follow.following_id).where(Follow.follower_id == follower_id, Follow.following_id.in_(candidates))
    )
    return set(rows)


async def follow_user(db: AsyncSession, follower: User, target_user_id: str) -> FollowOut:
    """Create the follow row and its notification in one transaction."""
    if target_user_id == follower.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot follow yourself")
    target = await require_user(db, target_user_id)
    if await is_following(db, follower.id, target.id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=ALREADY_FOLLOWING)

    follow = Follow(follower_id=follower.id, following_id=target.id)
    db.add(follow)
    try:
        await db.flush()
        notification = await notifications.notify_follow(db, follower, target.id)
        await db.commit()
    except IntegrityError:
        # concurrent duplicate follow lost the race on uq_follower_following
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=ALREADY_FOLLOWING)

    track_follow("follow")
    log.info(f"User {follower.id} followed {target.id}")
    await notifications.publish(db, [notification])
    return FollowOut(
        id=follow.id,
        follower_id=follow.follower_id,
        following_id=follow.following_id,
        created_at=follow.created_at,
        follower=UserSummary.model_validate(follower),
        following=UserSummary.model_validate(target),
    )


async def unfollow_user(db: AsyncSession, follower_id: str, target_user_id: str) -> None:
    result = await db.execute(
        delete(Follow).where(Follow.follower_id == follower_id, Follow.following_id == target_user_id)
    )
    if not result.rowcount:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You are not following this user")
    await db.commit()
    track_follow("unfollow")


async def count_follows(db: AsyncSession, user_id: str, kind: str) -> int:
    """``kind`` is ``followers`` (who follows the user) or ``following``."""
    await require_user(db, user_id)
    column = Follow.following_id if kind == "followers" else Follow.follower_id
    return await db.scalar(select(func.count(Follow.id)).where(column == user_id))
