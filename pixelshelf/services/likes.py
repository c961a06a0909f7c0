"""Likes on assets and projects."""

from __future__ import annotations

import logging

from fastapi import HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pixelshelf.models import Asset, Like, Project, User
from pixelshelf.schemas.like import LikeIn, LikeOut
from pixelshelf.services import notifications

log = logging.getLogger(__name__)


async def like(db: AsyncSession, user: User, payload: LikeIn) -> LikeOut:
    if payload.asset_id:
        target = await db.get(Asset, payload.asset_id)
        kind, column = "asset", Like.asset_id
    else:
        target = await db.get(Project, payload.project_id)
        kind, column = "project", Like.project_id
    if target is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{kind.capitalize()} not found")

    duplicate = HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"You have already liked this {kind}")
    if await db.scalar(select(Like.id).where(Like.user_id == user.id, column == target.id)):
        raise duplicate

    row = Like(user_id=user.id, asset_id=payload.asset_id, project_id=payload.project_id)
    db.add(row)
    try:
        await db.flush()
        if kind == "asset":
            notification = await notifications.notify_asset_like(db, user.id, target)
        else:
            owner_username = await db.scalar(select(User.username).where(User.id == target.user_id))
            notification = await notifications.notify_project_like(db, user.id, target, owner_username)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise duplicate

    await notifications.publish(db, [notification])
    return LikeOut.model_validate(row)


async def unlike(db: AsyncSession, user: User, payload: LikeIn) -> None:
    if payload.asset_id:
        kind, clause = "asset", Like.asset_id == payload.asset_id
    else:
        kind, clause = "project", Like.project_id == payload.project_id
    result = await db.execute(delete(Like).where(Like.user_id == user.id, clause))
    if not result.rowcount:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"You have not liked this {kind}")
    await db.commit()
