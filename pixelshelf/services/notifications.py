"""Notification persistence, side-effect helpers and live push."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Iterable, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pixelshelf.db import utcnow
from pixelshelf.metrics.prometheus import track_notification
from pixelshelf.models import Asset, Notification, NotificationPreferences, NotificationType, Project, User
from pixelshelf.schemas.notification import (
    NotificationOut,
    NotificationPreferencesIn,
    NotificationPreferencesOut,
    NotificationsPage,
    NotificationStats,
)
from pixelshelf.services.notification_stream import manager
from pixelshelf.utils.pagination import Page

log = logging.getLogger(__name__)

SUBSCRIPTION_LINK = "/settings/subscription"

__all__ = [
    "create_notification",
    "notify_follow",
    "notify_comment",
    "notify_asset_like",
    "notify_project_like",
    "notify_message",
    "notify_system",
    "publish",
    "unread_count",
    "push_unread_count",
    "list_notifications",
    "mark_read",
    "delete_notifications",
    "archive_notifications",
    "get_stats",
    "get_preferences",
    "save_preferences",
    "delete_old_read_notifications",
]


# ───────────────────────────────────────── creation ─────────────────────────────────────────
async def create_notification(
    db: AsyncSession,
    *,
    type: NotificationType,
    content: str,
    receiver_id: str,
    sender_id: Optional[str] = None,
    link_url: Optional[str] = None,
) -> Optional[Notification]:
    """Stage a notification row in the caller's transaction.

    Returns ``None`` when the sender is also the receiver. The caller commits
    and then hands the rows to :func:`publish`.
    """
    if sender_id is not None and sender_id == receiver_id:
        return None
    notification = Notification(
        type=type,
        content=content,
        link_url=link_url,
        receiver_id=receiver_id,
        sender_id=sender_id,
    )
    db.add(notification)
    await db.flush()
    track_notification(type)
    return notification


async def notify_follow(db: AsyncSession, follower: User, following_id: str) -> Optional[Notification]:
    return await create_notification(
        db,
        type=NotificationType.FOLLOW,
        content="started following you",
        link_url=f"/u/{follower.username}",
        receiver_id=following_id,
        sender_id=follower.id,
    )


async def notify_comment(
    db: AsyncSession,
    commenter_id: str,
    asset: Asset,
    parent_author_id: Optional[str] = None,
) -> List[Notification]:
    created = []
    link = f"/assets/{asset.id}#comments"
    owner_note = await create_notification(
        db,
        type=NotificationType.COMMENT,
        content=f'commented on your asset "{asset.title}"',
        link_url=link,
        receiver_id=asset.user_id,
        sender_id=commenter_id,
    )
    if owner_note:
        created.append(owner_note)
    if parent_author_id and parent_author_id not in (commenter_id, asset.user_id):
        reply_note = await create_notification(
            db,
            type=NotificationType.COMMENT,
            content=f'replied to your comment on "{asset.title}"',
            link_url=link,
            receiver_id=parent_author_id,
            sender_id=commenter_id,
        )
        if reply_note:
            created.append(reply_note)
    return created


async def notify_asset_like(db: AsyncSession, liker_id: str, asset: Asset) -> Optional[Notification]:
    return await create_notification(
        db,
        type=NotificationType.LIKE,
        content=f'liked your asset "{asset.title}"',
        link_url=f"/assets/{asset.id}",
        receiver_id=asset.user_id,
        sender_id=liker_id,
    )


async def notify_project_like(
    db: AsyncSession, liker_id: str, project: Project, owner_username: Optional[str]
) -> Optional[Notification]:
    return await create_notification(
        db,
        type=NotificationType.LIKE,
        content=f'liked your project "{project.title}"',
        link_url=f"/u/{owner_username}/projects/{project.id}",
        receiver_id=project.user_id,
        sender_id=liker_id,
    )


async def notify_message(db: AsyncSession, sender_id: str, receiver_id: str) -> Optional[Notification]:
    return await create_notification(
        db,
        type=NotificationType.MESSAGE,
        content="sent you a message",
        link_url=f"/chat?with={sender_id}",
        receiver_id=receiver_id,
        sender_id=sender_id,
    )


async def notify_system(
    db: AsyncSession, receiver_id: str, content: str, link_url: Optional[str] = SUBSCRIPTION_LINK
) -> Optional[Notification]:
    return await create_notification(
        db,
        type=NotificationType.SYSTEM,
        content=content,
        link_url=link_url,
        receiver_id=receiver_id,
    )


async def publish(db: AsyncSession, notifications: Iterable[Optional[Notification]]) -> int:
    """Push committed notifications to any open streams of their receivers."""
    ids = [n.id for n in notifications if n is not None and manager.is_connected(n.receiver_id)]
    if not ids:
        return 0
    rows = await db.scalars(
        select(Notification)
        .options(selectinload(Notification.sender))
        .where(Notification.id.in_(ids))
        .execution_options(populate_existing=True)
    )
    delivered = 0
    for row in rows:
        payload = NotificationOut.model_validate(row).model_dump(by_alias=True, mode="json")
        delivered += manager.send_notification(row.receiver_id, payload)
    return delivered


# ───────────────────────────────────────── reads ────────────────────────────────────────────
async def unread_count(db: AsyncSession, user_id: str) -> int:
    return await db.scalar(
        select(func.count(Notification.id)).where(
            Notification.receiver_id == user_id,
            Notification.read.is_(False),
            Notification.archived.is_(False),
        )
    )


async def push_unread_count(db: AsyncSession, user_id: str) -> None:
    if manager.is_connected(user_id):
        manager.send_unread_count(user_id, await unread_count(db, user_id))


async def list_notifications(
    db: AsyncSession,
    user_id: str,
    page: Page,
    unread_only: bool = False,
    archived_only: bool = False,
) -> NotificationsPage:
    filters = [
        Notification.receiver_id == user_id,
        Notification.archived.is_(archived_only),
    ]
    if unread_only:
        filters.append(Notification.read.is_(False))

    total = await db.scalar(select(func.count(Notification.id)).where(*filters))
    rows = await db.scalars(
        select(Notification)
        .options(selectinload(Notification.sender))
        .where(*filters)
        .order_by(Notification.created_at.desc())
        .offset(page.offset)
        .limit(page.limit)
    )
    return NotificationsPage(
        notifications=[NotificationOut.model_validate(n) for n in rows],
        unread_count=await unread_count(db, user_id),
        pagination=page.pagination(total),
    )


async def get_stats(db: AsyncSession, user_id: str) -> NotificationStats:
    active = [Notification.receiver_id == user_id, Notification.archived.is_(False)]
    by_type = dict(
        (await db.execute(
            select(Notification.type, func.count(Notification.id)).where(*active).group_by(Notification.type)
        )).all()
    )
    return NotificationStats(
        total=sum(by_type.values()),
        unread=await unread_count(db, user_id),
        by_type={t.value: by_type.get(t, 0) for t in NotificationType},
    )


# ───────────────────────────────────────── mutations ────────────────────────────────────────
async def mark_read(db: AsyncSession, user_id: str, ids: Optional[List[str]] = None, all: bool = False) -> int:
    if ids is None and not all:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Either notification ids or all flag must be provided",
        )
    stmt = update(Notification).where(Notification.receiver_id == user_id).values(read=True)
    if all:
        stmt = stmt.where(Notification.read.is_(False))
    elif ids:
        stmt = stmt.where(Notification.id.in_(ids))
    else:
        return 0
    result = await db.execute(stmt)
    await db.commit()
    await push_unread_count(db, user_id)
    return result.rowcount


async def delete_notifications(db: AsyncSession, user_id: str, ids: List[str]) -> int:
    result = await db.execute(
        delete(Notification).where(Notification.receiver_id == user_id, Notification.id.in_(ids))
    )
    await db.commit()
    await push_unread_count(db, user_id)
    return result.rowcount


async def archive_notifications(db: AsyncSession, user_id: str, ids: List[str]) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.receiver_id == user_id, Notification.id.in_(ids))
        .values(archived=True)
    )
    await db.commit()
    await push_unread_count(db, user_id)
    return result.rowcount


# ───────────────────────────────────────── preferences ──────────────────────────────────────
async def get_preferences(db: AsyncSession, user_id: str) -> NotificationPreferencesOut:
    row = await db.scalar(select(NotificationPreferences).where(NotificationPreferences.user_id == user_id))
    if row is None:
        return NotificationPreferencesOut()
    return NotificationPreferencesOut(email=row.email, push=row.push, in_app=row.in_app)


async def save_preferences(
    db: AsyncSession, user_id: str, prefs: NotificationPreferencesIn
) -> NotificationPreferencesOut:
    data = prefs.model_dump()
    row = await db.scalar(select(NotificationPreferences).where(NotificationPreferences.user_id == user_id))
    if row is None:
        row = NotificationPreferences(user_id=user_id, **data)
        db.add(row)
    else:
        row.email, row.push, row.in_app = data["email"], data["push"], data["in_app"]
    await db.commit()
    return NotificationPreferencesOut(**data)


# ───────────────────────────────────────── maintenance ──────────────────────────────────────
async def delete_old_read_notifications(db: AsyncSession, days: int) -> int:
    cutoff = utcnow() - timedelta(days=days)
    result = await db.execute(
        delete(Notification).where(Notification.read.is_(True), Notification.created_at < cutoff)
    )
    await db.commit()
    log.info(f"Cleaned up {result.rowcount} read notifications older than {days} days")
    return result.rowcount
