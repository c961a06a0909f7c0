import httpx
import pytest
from tenacity import wait_none

from pixelshelf.client.api_client import ApiError, FollowToggle, PixelShelfClient, QueryCache
from pixelshelf.main import app

BASE_URL = "http://pixelshelf.test"


@pytest.fixture
def transport():
    return httpx.ASGITransport(app=app)


async def _register(transport, username):
    async with httpx.AsyncClient(transport=transport, base_url=BASE_URL) as http:
        resp = await http.post("/api/auth/register", json={
            "name": username.title(), "email": f"{username}@example.com",
            "password": "password123", "username": username,
        })
        token = resp.json()["token"]
        me = await http.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        return token, me.json()["id"]


# ─────────────────────────────── query cache ───────────────────────────────
def test_query_cache_expiry():
    now = [0.0]
    cache = QueryCache(ttl=60, clock=lambda: now[0])
    cache.set(("users", "profile", "alice"), {"id": "1"})
    assert cache.get(("users", "profile", "alice")) == {"id": "1"}
    now[0] = 61
    assert cache.get(("users", "profile", "alice")) is None


def test_query_cache_prefix_invalidation():
    cache = QueryCache()
    cache.set(("users", "profile", "alice"), 1)
    cache.set(("users", "profile", "alice", "followers"), 2)
    cache.set(("users", "profile", "bob"), 3)
    cache.set(("assets", "detail", "a1"), 4)

    assert cache.invalidate(("users", "profile", "alice")) == 2
    assert ("users", "profile", "bob") in cache
    assert cache.invalidate(("users",)) == 1
    assert len(cache) == 1


# ─────────────────────────────── client against the app ───────────────────────────────
@pytest.mark.asyncio
async def test_reads_are_cached_until_a_mutation(transport):
    alice_token, _ = await _register(transport, "alice")
    carol_token, _ = await _register(transport, "carol")
    _, bob_id = await _register(transport, "bob")

    async with PixelShelfClient(BASE_URL, token=alice_token, transport=transport) as alice, \
            PixelShelfClient(BASE_URL, token=carol_token, transport=transport) as carol:
        assert (await alice.user_profile("bob"))["stats"]["followers"] == 0

        await carol.follow(bob_id)
        # still served from alice's cache
        assert (await alice.user_profile("bob"))["stats"]["followers"] == 0

        await alice.follow(bob_id)
        assert (await alice.user_profile("bob"))["stats"]["followers"] == 2
        assert await alice.follow_status(bob_id) is True

        await alice.unfollow(bob_id)
        assert await alice.follow_status(bob_id) is False


@pytest.mark.asyncio
async def test_errors_raise_api_error(transport):
    token, _ = await _register(transport, "alice")
    async with PixelShelfClient(BASE_URL, token=token, transport=transport) as client:
        with pytest.raises(ApiError) as excinfo:
            await client.user_profile("nobody")
        assert excinfo.value.status_code == 404
        assert excinfo.value.detail == "User not found"


@pytest.mark.asyncio
async def test_login_and_notifications(transport):
    _, alice_id = await _register(transport, "alice")
    bob_token, _ = await _register(transport, "bob")
    async with PixelShelfClient(BASE_URL, transport=transport) as alice, \
            PixelShelfClient(BASE_URL, token=bob_token, transport=transport) as bob:
        await alice.login("alice@example.com", "password123")
        assert (await alice.me())["id"] == alice_id

        await bob.follow(alice_id)
        inbox = await alice.notifications()
        assert inbox["unreadCount"] == 1

        await alice.mark_notifications_read()
        assert (await alice.notifications())["unreadCount"] == 0
        assert (await alice.notification_stats())["unread"] == 0


@pytest.mark.asyncio
async def test_like_invalidates_asset_queries(transport):
    token, _ = await _register(transport, "alice")
    async with httpx.AsyncClient(transport=transport, base_url=BASE_URL) as http:
        resp = await http.post("/api/assets", json={
            "title": "Sprite", "fileUrl": "https://cdn.example.com/s.png", "fileType": "IMAGE",
        }, headers={"Authorization": f"Bearer {token}"})
        asset_id = resp.json()["id"]

    async with PixelShelfClient(BASE_URL, token=token, transport=transport) as client:
        assert (await client.asset(asset_id))["likes"] == 0
        await client.like_asset(asset_id)
        assert (await client.asset(asset_id))["likes"] == 1
        await client.unlike_asset(asset_id)
        assert (await client.asset(asset_id))["likes"] == 0

        found = await client.search(q="Sprite", type="assets")
        assert [a["id"] for a in found["assets"]] == [asset_id]
        assert (await client.trending())["assets"][0]["id"] == asset_id


# ─────────────────────────────── optimistic follow ───────────────────────────────
@pytest.mark.asyncio
async def test_follow_toggle_flips_state(transport):
    token, _ = await _register(transport, "alice")
    _, bob_id = await _register(transport, "bob")
    changes = []
    async with PixelShelfClient(BASE_URL, token=token, transport=transport) as client:
        toggle = FollowToggle(client, bob_id, is_following=False, on_change=changes.append)
        assert await toggle.toggle() is True
        assert await toggle.toggle() is False
    assert changes == [True, False]


@pytest.mark.asyncio
async def test_follow_toggle_reverts_on_error(transport):
    token, alice_id = await _register(transport, "alice")
    changes = []
    async with PixelShelfClient(BASE_URL, token=token, transport=transport) as client:
        # following yourself is rejected by the server
        toggle = FollowToggle(client, alice_id, is_following=False, on_change=changes.append)
        with pytest.raises(ApiError):
            await toggle.toggle()
    assert toggle.is_following is False
    assert toggle.pending is False
    assert changes == [True, False]


# ─────────────────────────────── retries ───────────────────────────────
@pytest.mark.asyncio
async def test_get_retries_transport_errors(monkeypatch):
    monkeypatch.setattr(PixelShelfClient._get.retry, "wait", wait_none())
    attempts = []

    def handler(request):
        attempts.append(request)
        if len(attempts) < 3:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"status": "alive"})

    async with PixelShelfClient(BASE_URL, transport=httpx.MockTransport(handler)) as client:
        assert await client.query(("health",), "/health/live") == {"status": "alive"}
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_mutations_are_not_retried():
    attempts = []

    def handler(request):
        attempts.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    async with PixelShelfClient(BASE_URL, token="t", transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(httpx.ConnectError):
            await client.follow("someone")
    assert len(attempts) == 1
