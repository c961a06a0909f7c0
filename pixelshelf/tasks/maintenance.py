"""Periodic cleanup of notification history."""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pixelshelf.core.celery_app import celery_app
from pixelshelf.core.config import settings
from pixelshelf.db import AsyncSessionLocal
from pixelshelf.metrics.prometheus import track_celery_task
from pixelshelf.services.notifications import delete_old_read_notifications

logger = logging.getLogger(__name__)

TASK_NAME = "pixelshelf.tasks.maintenance.cleanup_old_notifications"


async def _cleanup(days: int) -> int:
    async with AsyncSessionLocal() as session:
        return await delete_old_read_notifications(session, days)


@celery_app.task(name=TASK_NAME)
def cleanup_old_notifications(days: Optional[int] = None) -> Dict[str, Any]:
    """
    Delete read notifications older than the retention window.

    Unread notifications are kept regardless of age.
    """
    days = days or settings.notification_retention_days
    start_time = time.time()
    logger.info(f"Removing read notifications older than {days} days")
    try:
        deleted = asyncio.run(_cleanup(days))
    except Exception:
        track_celery_task(TASK_NAME, "failure", time.time() - start_time)
        raise
    duration = time.time() - start_time
    track_celery_task(TASK_NAME, "success", duration)
    logger.info(f"Removed {deleted} notifications in {duration:.2f}s")
    return {
        "deleted": deleted,
        "retention_days": days,
        "duration_seconds": duration,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
