from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pixelshelf.core.dependencies import get_current_user
from pixelshelf.db import get_db
from pixelshelf.models import User
from pixelshelf.schemas.follow import (
    FollowCountOut,
    FollowCountType,
    FollowIn,
    FollowOut,
    FollowStatusOut,
    UnfollowOut,
)
from pixelshelf.services import follows as service


router = APIRouter(
    prefix="/follow",
    tags=["follow"],
)


# ───────────────────────────────────────── endpoints ────────────────────────────────────────
@router.post("", status_code=status.HTTP_201_CREATED, response_model=FollowOut)
async def follow_user(
    payload: FollowIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Follow another user. The followed user receives a FOLLOW notification.
    """
    return await service.follow_user(db, user, payload.target_user_id)


@router.delete("", response_model=UnfollowOut)
async def unfollow_user(
    payload: FollowIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Stop following a user. 400 when the caller was not following them.
    """
    await service.unfollow_user(db, user.id, payload.target_user_id)
    return UnfollowOut(unfollowed=payload.target_user_id)


@router.get("/status", response_model=FollowStatusOut)
async def follow_status(
    target_user_id: str = Query(..., alias="targetUserId", min_length=1),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await service.require_user(db, target_user_id)
    return FollowStatusOut(is_following=await service.is_following(db, user.id, target_user_id))


@router.get("/count", response_model=FollowCountOut)
async def follow_count(
    user_id: str = Query(..., alias="userId", min_length=1),
    kind: FollowCountType = Query(..., alias="type"),
    db: AsyncSession = Depends(get_db),
):
    """
    Number of followers of, or accounts followed by, ``userId``.
    """
    return FollowCountOut(count=await service.count_follows(db, user_id, kind))
