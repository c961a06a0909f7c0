"""In-process fan-out of notifications to server-sent event streams.

Each connected client owns an ``asyncio.Queue``; publishers push JSON payloads
onto every queue registered for the receiving user. Nothing is persisted here,
so a user with no open stream simply misses the live push and sees the
notification on the next list request.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections import defaultdict
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional, Set

from pixelshelf.metrics.prometheus import notification_streams

log = logging.getLogger(__name__)

HEARTBEAT_SECONDS = 30.0
QUEUE_SIZE = 100


def format_event(payload: Dict[str, Any]) -> str:
    return f"data: {json.dumps(payload, default=str)}\n\n"


class NotificationStreamManager:
    def __init__(self):
        self._queues: Dict[str, Set[asyncio.Queue]] = defaultdict(set)

    def connect(self, user_id: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=QUEUE_SIZE)
        self._queues[user_id].add(queue)
        notification_streams.inc()
        log.debug(f"Notification stream opened for user {user_id}")
        return queue

    def disconnect(self, user_id: str, queue: asyncio.Queue) -> None:
        queues = self._queues.get(user_id)
        if not queues or queue not in queues:
            return
        queues.discard(queue)
        notification_streams.dec()
        if not queues:
            del self._queues[user_id]
        log.debug(f"Notification stream closed for user {user_id}")

    def is_connected(self, user_id: str) -> bool:
        return bool(self._queues.get(user_id))

    def publish(self, user_id: str, payload: Dict[str, Any]) -> int:
        """Queue ``payload`` on every stream of ``user_id``; returns how many received it."""
        delivered = 0
        for queue in list(self._queues.get(user_id, ())):
            try:
                queue.put_nowait(payload)
                delivered += 1
            except asyncio.QueueFull:
                log.warning(f"Dropping notification for slow stream of user {user_id}")
        return delivered

    def send_notification(self, user_id: str, notification: Dict[str, Any]) -> int:
        return self.publish(user_id, {"type": "notification", "data": notification})

    def send_unread_count(self, user_id: str, count: int) -> int:
        return self.publish(user_id, {"type": "unread_count", "count": count})


manager = NotificationStreamManager()


async def event_stream(
    user_id: str,
    unread_count: int,
    is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
    heartbeat: float = HEARTBEAT_SECONDS,
    stream_manager: Optional[NotificationStreamManager] = None,
) -> AsyncIterator[str]:
    """Yield SSE frames for ``user_id`` until the client goes away."""
    stream_manager = stream_manager or manager
    queue = stream_manager.connect(user_id)
    try:
        yield ": connected\n\n"
        yield format_event({"type": "unread_count", "count": unread_count})
        while True:
            if is_disconnected is not None and await is_disconnected():
                break
            try:
                payload = await asyncio.wait_for(queue.get(), timeout=heartbeat)
            except asyncio.TimeoutError:
                yield ": heartbeat\n\n"
                continue
            yield format_event(payload)
    finally:
        stream_manager.disconnect(user_id, queue)
