from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from pixelshelf.core.dependencies import get_current_user
from pixelshelf.db import get_db
from pixelshelf.models import User
from pixelshelf.schemas.notification import (
    MarkReadIn,
    NotificationIdsIn,
    NotificationPreferencesIn,
    NotificationPreferencesOut,
    NotificationsPage,
    NotificationStats,
    UpdatedOut,
)
from pixelshelf.services import notifications as service
from pixelshelf.services.notification_stream import event_stream
from pixelshelf.utils.pagination import Page, PageParams

router = APIRouter(prefix="/notifications", tags=["notifications"])

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.get("", response_model=NotificationsPage)
async def list_notifications(
    page: Page = Depends(PageParams(default_limit=20)),
    unread_only: bool = Query(False, alias="unreadOnly"),
    archived_only: bool = Query(False, alias="archivedOnly"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await service.list_notifications(db, user.id, page, unread_only, archived_only)


@router.patch("", response_model=UpdatedOut)
async def mark_read(
    payload: MarkReadIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    count = await service.mark_read(db, user.id, payload.ids, payload.all)
    return UpdatedOut(count=count)


@router.post("/mark-all-read", response_model=UpdatedOut)
async def mark_all_read(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    count = await service.mark_read(db, user.id, all=True)
    return UpdatedOut(count=count)


@router.post("/delete", response_model=UpdatedOut)
async def delete_notifications(
    payload: NotificationIdsIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    count = await service.delete_notifications(db, user.id, payload.ids)
    return UpdatedOut(count=count)


@router.post("/archive", response_model=UpdatedOut)
async def archive_notifications(
    payload: NotificationIdsIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    count = await service.archive_notifications(db, user.id, payload.ids)
    return UpdatedOut(count=count)


@router.get("/preferences", response_model=NotificationPreferencesOut)
async def get_preferences(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await service.get_preferences(db, user.id)


@router.put("/preferences", response_model=NotificationPreferencesOut)
async def save_preferences(
    payload: NotificationPreferencesIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await service.save_preferences(db, user.id, payload)


@router.get("/stats", response_model=NotificationStats)
async def get_stats(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await service.get_stats(db, user.id)


@router.get("/stream")
async def stream_notifications(
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Server-sent events for the caller.

    Opens with ``: connected`` and the current unread count, then relays
    notification and unread-count events as they are published. A heartbeat
    comment is sent when the connection has been idle for 30 seconds.
    """
    unread = await service.unread_count(db, user.id)
    return StreamingResponse(
        event_stream(user.id, unread, is_disconnected=request.is_disconnected),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )
