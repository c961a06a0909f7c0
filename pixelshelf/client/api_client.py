"""Async client for the PixelShelf HTTP API.

Reads go through a small TTL query cache keyed by tuples such as
``("users", "profile", "alice")``. Mutations invalidate cached entries by key
prefix, so following a user drops every cached ``("users", ...)`` query.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Hashable, Iterable, Optional, Tuple

import httpx

from pixelshelf.utils.http_client import transport_retry

log = logging.getLogger(__name__)

QueryKey = Tuple[Hashable, ...]

DEFAULT_STALE_SECONDS = 60.0


class ApiError(Exception):
    """Raised for any non-2xx response from the API."""

    def __init__(self, status_code: int, detail: Any = None):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class QueryCache:
    def __init__(self, ttl: float = DEFAULT_STALE_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[QueryKey, Tuple[float, Any]] = {}

    def get(self, key: QueryKey) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at > self.ttl:
            del self._entries[key]
            return None
        return value

    def set(self, key: QueryKey, value: Any) -> None:
        self._entries[key] = (self._clock(), value)

    def invalidate(self, prefix: QueryKey) -> int:
        """Drop every entry whose key starts with ``prefix``."""
        stale = [key for key in self._entries if key[: len(prefix)] == tuple(prefix)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: QueryKey) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)


def _params_key(params: Optional[Dict[str, Any]]) -> Tuple:
    return tuple(sorted((k, v) for k, v in (params or {}).items() if v is not None))


class PixelShelfClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        cache_ttl: float = DEFAULT_STALE_SECONDS,
        timeout: float = 30.0,
    ):
        self.cache = QueryCache(ttl=cache_ttl)
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )
        self.token = token

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self):
        await self._http.aclose()

    # ─────────────────────────────── transport ────────────────────────────
    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if response.status_code >= 400:
            try:
                detail = response.json().get("detail")
            except ValueError:
                detail = response.text
            raise ApiError(response.status_code, detail)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @transport_retry
    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        clean = {k: v for k, v in (params or {}).items() if v is not None}
        response = await self._http.get(f"/api{path}", params=clean, headers=self._headers())
        return self._decode(response)

    async def _send(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        response = await self._http.request(method, f"/api{path}", json=json, headers=self._headers())
        return self._decode(response)

    async def query(self, key: QueryKey, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET ``path`` unless a fresh result for ``key`` is cached."""
        full_key = tuple(key) + _params_key(params)
        cached = self.cache.get(full_key)
        if cached is not None:
            return cached
        data = await self._get(path, params)
        self.cache.set(full_key, data)
        return data

    async def mutate(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        invalidates: Iterable[QueryKey] = (),
    ) -> Any:
        data = await self._send(method, path, json)
        for prefix in invalidates:
            dropped = self.cache.invalidate(prefix)
            log.debug(f"Invalidated {dropped} cached queries under {prefix}")
        return data

    # ─────────────────────────────── auth ─────────────────────────────────
    async def login(self, email: str, password: str) -> str:
        data = await self._send("POST", "/auth/login", {"email": email, "password": password})
        self.token = data["token"]
        self.cache.clear()
        return self.token

    async def me(self) -> Dict[str, Any]:
        return await self.query(("auth", "me"), "/auth/me")

    # ─────────────────────────────── users & follows ──────────────────────
    async def user_profile(self, username: str) -> Dict[str, Any]:
        return await self.query(("users", "profile", username), f"/users/{username}")

    async def followers(self, username: str, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        return await self.query(
            ("users", "profile", username, "followers"),
            f"/users/{username}/followers",
            {"page": page, "limit": limit},
        )

    async def following(self, username: str, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        return await self.query(
            ("users", "profile", username, "following"),
            f"/users/{username}/following",
            {"page": page, "limit": limit},
        )

    async def follow_status(self, user_id: str) -> bool:
        data = await self.query(("follow", "status", user_id), "/follow/status", {"targetUserId": user_id})
        return data["isFollowing"]

    async def follow(self, user_id: str) -> Dict[str, Any]:
        return await self.mutate(
            "POST", "/follow", {"targetUserId": user_id}, invalidates=[("users",), ("follow",)]
        )

    async def unfollow(self, user_id: str) -> Dict[str, Any]:
        return await self.mutate(
            "DELETE", "/follow", {"targetUserId": user_id}, invalidates=[("users",), ("follow",)]
        )

    # ─────────────────────────────── likes ────────────────────────────────
    async def like_asset(self, asset_id: str) -> Dict[str, Any]:
        return await self.mutate(
            "POST", "/likes", {"assetId": asset_id}, invalidates=[("assets",), ("trending",)]
        )

    async def unlike_asset(self, asset_id: str) -> Dict[str, Any]:
        return await self.mutate(
            "DELETE", "/likes", {"assetId": asset_id}, invalidates=[("assets",), ("trending",)]
        )

    async def like_project(self, project_id: str) -> Dict[str, Any]:
        return await self.mutate(
            "POST", "/likes", {"projectId": project_id}, invalidates=[("projects",), ("trending",)]
        )

    async def unlike_project(self, project_id: str) -> Dict[str, Any]:
        return await self.mutate(
            "DELETE", "/likes", {"projectId": project_id}, invalidates=[("projects",), ("trending",)]
        )

    async def asset(self, asset_id: str) -> Dict[str, Any]:
        return await self.query(("assets", "detail", asset_id), f"/assets/{asset_id}")

    # ─────────────────────────────── discovery ────────────────────────────
    async def search(
        self,
        q: Optional[str] = None,
        type: str = "all",
        tag: Optional[str] = None,
        asset_type: Optional[str] = None,
        sort: str = "latest",
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        params = {
            "q": q, "type": type, "tag": tag, "assetType": asset_type,
            "sort": sort, "page": page, "limit": limit,
        }
        return await self.query(("search",), "/search", params)

    async def trending(self, type: str = "assets", limit: int = 10) -> Dict[str, Any]:
        return await self.query(("trending",), "/trending", {"type": type, "limit": limit})

    # ─────────────────────────────── notifications ────────────────────────
    async def notifications(
        self, page: int = 1, limit: int = 20, unread_only: bool = False, archived_only: bool = False
    ) -> Dict[str, Any]:
        params = {"page": page, "limit": limit, "unreadOnly": unread_only, "archivedOnly": archived_only}
        return await self.query(("notifications", "list"), "/notifications", params)

    async def notification_stats(self) -> Dict[str, Any]:
        return await self.query(("notifications", "stats"), "/notifications/stats")

    async def mark_notifications_read(self, ids: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        if ids is None:
            return await self.mutate("POST", "/notifications/mark-all-read", invalidates=[("notifications",)])
        return await self.mutate("PATCH", "/notifications", {"ids": list(ids)}, invalidates=[("notifications",)])


class FollowToggle:
    """Optimistic follow state for one target user.

    ``toggle`` flips ``is_following`` before the request is sent and restores
    it if the request fails. ``on_change`` sees both transitions.
    """

    def __init__(
        self,
        client: PixelShelfClient,
        user_id: str,
        is_following: bool,
        on_change: Optional[Callable[[bool], None]] = None,
    ):
        self.client = client
        self.user_id = user_id
        self.is_following = is_following
        self.on_change = on_change
        self.pending = False

    def _set(self, value: bool) -> None:
        self.is_following = value
        if self.on_change is not None:
            self.on_change(value)

    async def toggle(self) -> bool:
        if self.pending:
            return self.is_following
        previous = self.is_following
        self._set(not previous)
        self.pending = True
        try:
            if previous:
                await self.client.unfollow(self.user_id)
            else:
                await self.client.follow(self.user_id)
        except (ApiError, httpx.HTTPError):
            log.warning(f"Follow toggle for {self.user_id} failed, reverting")
            self._set(previous)
            raise
        finally:
            self.pending = False
        return self.is_following
