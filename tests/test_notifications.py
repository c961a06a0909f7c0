import asyncio
import json

import pytest

from pixelshelf.db import AsyncSessionLocal
from pixelshelf.models import NotificationType, User
from pixelshelf.services import notifications
from pixelshelf.services.notification_stream import NotificationStreamManager, event_stream, format_event, manager


def _follow(client, actor, target):
    assert client.post("/api/follow", json={"targetUserId": target.id}, headers=actor.headers).status_code == 201


def _inbox(client, user, query=""):
    return client.get(f"/api/notifications{query}", headers=user.headers).json()


@pytest.fixture
def alice_with_followers(client, make_user):
    alice = make_user("alice")
    fans = [make_user(f"fan{i}") for i in range(3)]
    for fan in fans:
        _follow(client, fan, alice)
    return alice


# ─────────────────────────────── HTTP surface ───────────────────────────────
def test_list_notifications(client, alice_with_followers):
    body = _inbox(client, alice_with_followers)
    assert len(body["notifications"]) == 3
    assert body["unreadCount"] == 3
    assert body["pagination"] == {"page": 1, "limit": 20, "totalCount": 3, "totalPages": 1}
    assert body["notifications"][0]["sender"]["username"].startswith("fan")


def test_notifications_require_auth(client):
    assert client.get("/api/notifications").status_code == 401
    assert client.patch("/api/notifications", json={"all": True}).status_code == 401
    assert client.get("/api/notifications/stream").status_code == 401


def test_mark_selected_read(client, alice_with_followers):
    alice = alice_with_followers
    first = _inbox(client, alice)["notifications"][0]
    resp = client.patch("/api/notifications", json={"ids": [first["id"]]}, headers=alice.headers)
    assert resp.json() == {"success": True, "count": 1}

    unread = _inbox(client, alice, "?unreadOnly=true")
    assert unread["pagination"]["totalCount"] == 2
    assert first["id"] not in [n["id"] for n in unread["notifications"]]
    assert unread["unreadCount"] == 2


def test_mark_all_read(client, alice_with_followers):
    alice = alice_with_followers
    resp = client.patch("/api/notifications", json={"all": True}, headers=alice.headers)
    assert resp.json()["count"] == 3
    assert _inbox(client, alice)["unreadCount"] == 0
    assert client.post("/api/notifications/mark-all-read", headers=alice.headers).json()["count"] == 0


def test_mark_read_needs_ids_or_all(client, make_user):
    alice = make_user("alice")
    resp = client.patch("/api/notifications", json={}, headers=alice.headers)
    assert resp.status_code == 400


def test_cannot_touch_other_users_notifications(client, alice_with_followers, make_user):
    mallory = make_user("mallory")
    ids = [n["id"] for n in _inbox(client, alice_with_followers)["notifications"]]
    resp = client.post("/api/notifications/delete", json={"ids": ids}, headers=mallory.headers)
    assert resp.json()["count"] == 0
    assert len(_inbox(client, alice_with_followers)["notifications"]) == 3


def test_delete_and_archive(client, alice_with_followers):
    alice = alice_with_followers
    ids = [n["id"] for n in _inbox(client, alice)["notifications"]]

    assert client.post("/api/notifications/delete", json={"ids": ids[:1]}, headers=alice.headers).json()["count"] == 1
    assert client.post("/api/notifications/archive", json={"ids": ids[1:2]}, headers=alice.headers).json()["count"] == 1

    active = _inbox(client, alice)
    assert [n["id"] for n in active["notifications"]] == ids[2:]
    assert active["unreadCount"] == 1

    archived = _inbox(client, alice, "?archivedOnly=true")
    assert [n["id"] for n in archived["notifications"]] == [ids[1]]
    assert archived["notifications"][0]["archived"] is True


def test_delete_requires_ids(client, make_user):
    alice = make_user("alice")
    assert client.post("/api/notifications/delete", json={"ids": []}, headers=alice.headers).status_code == 400


def test_stats(client, alice_with_followers, make_asset, make_user):
    alice = alice_with_followers
    bob = make_user("bob")
    asset = make_asset(alice)
    client.post("/api/likes", json={"assetId": asset["id"]}, headers=bob.headers)
    client.post("/api/notifications/mark-all-read", headers=alice.headers)
    client.post("/api/comments", json={"assetId": asset["id"], "content": "nice"}, headers=bob.headers)

    stats = client.get("/api/notifications/stats", headers=alice.headers).json()
    assert stats["total"] == 5
    assert stats["unread"] == 1
    assert stats["byType"] == {"FOLLOW": 3, "LIKE": 1, "COMMENT": 1, "MESSAGE": 0, "SYSTEM": 0}


def test_preferences_defaults_and_update(client, make_user):
    alice = make_user("alice")
    defaults = client.get("/api/notifications/preferences", headers=alice.headers).json()
    assert defaults["email"]["enabled"] is True
    assert defaults["email"]["frequency"] == "instant"
    assert defaults["inApp"] == {"enabled": True, "sound": False, "desktop": True}

    defaults["email"]["frequency"] = "weekly"
    defaults["push"]["types"]["like"] = False
    resp = client.put("/api/notifications/preferences", json=defaults, headers=alice.headers)
    assert resp.status_code == 200

    stored = client.get("/api/notifications/preferences", headers=alice.headers).json()
    assert stored["email"]["frequency"] == "weekly"
    assert stored["push"]["types"]["like"] is False

    defaults["inApp"]["sound"] = True
    client.put("/api/notifications/preferences", json=defaults, headers=alice.headers)
    assert client.get("/api/notifications/preferences", headers=alice.headers).json()["inApp"]["sound"] is True


def test_preferences_reject_unknown_frequency(client, make_user):
    alice = make_user("alice")
    body = client.get("/api/notifications/preferences", headers=alice.headers).json()
    body["email"]["frequency"] = "hourly"
    assert client.put("/api/notifications/preferences", json=body, headers=alice.headers).status_code == 400


# ─────────────────────────────── live streams ───────────────────────────────
def test_format_event():
    assert format_event({"type": "unread_count", "count": 2}) == 'data: {"type": "unread_count", "count": 2}\n\n'


@pytest.mark.asyncio
async def test_stream_manager_fan_out():
    streams = NotificationStreamManager()
    first, second = streams.connect("u1"), streams.connect("u1")
    assert streams.send_unread_count("u1", 4) == 2
    assert streams.send_unread_count("u2", 1) == 0
    assert first.get_nowait() == {"type": "unread_count", "count": 4}
    assert second.get_nowait() == {"type": "unread_count", "count": 4}

    streams.disconnect("u1", first)
    assert streams.is_connected("u1")
    streams.disconnect("u1", second)
    assert not streams.is_connected("u1")


@pytest.mark.asyncio
async def test_stream_manager_drops_when_queue_full():
    streams = NotificationStreamManager()
    queue = streams.connect("u1")
    for i in range(queue.maxsize):
        streams.send_unread_count("u1", i)
    assert streams.send_unread_count("u1", 999) == 0
    assert queue.qsize() == queue.maxsize
    streams.disconnect("u1", queue)


@pytest.mark.asyncio
async def test_event_stream_frames():
    streams = NotificationStreamManager()
    stream = event_stream("u1", 3, heartbeat=0.05, stream_manager=streams)

    assert await stream.__anext__() == ": connected\n\n"
    assert json.loads((await stream.__anext__())[len("data: "):]) == {"type": "unread_count", "count": 3}
    assert streams.is_connected("u1")

    streams.send_notification("u1", {"id": "n1"})
    frame = await stream.__anext__()
    assert json.loads(frame[len("data: "):]) == {"type": "notification", "data": {"id": "n1"}}

    assert await stream.__anext__() == ": heartbeat\n\n"
    await stream.aclose()
    assert not streams.is_connected("u1")


@pytest.mark.asyncio
async def test_event_stream_stops_on_disconnect():
    streams = NotificationStreamManager()

    async def gone():
        return True

    frames = [frame async for frame in event_stream("u1", 0, is_disconnected=gone, stream_manager=streams)]
    assert len(frames) == 2
    assert not streams.is_connected("u1")


async def _users(session, *names):
    users = [User(name=n, username=n, email=f"{n}@example.com") for n in names]
    session.add_all(users)
    await session.commit()
    return users


@pytest.mark.asyncio
async def test_publish_reaches_connected_receiver_only():
    async with AsyncSessionLocal() as session:
        alice, bob, carol = await _users(session, "alice", "bob", "carol")
        to_bob = await notifications.notify_follow(session, alice, bob.id)
        to_carol = await notifications.notify_follow(session, alice, carol.id)
        await session.commit()

        queue = manager.connect(bob.id)
        try:
            assert await notifications.publish(session, [to_bob, to_carol, None]) == 1
            event = queue.get_nowait()
        finally:
            manager.disconnect(bob.id, queue)

    assert event["type"] == "notification"
    assert event["data"]["id"] == to_bob.id
    assert event["data"]["sender"]["username"] == "alice"


@pytest.mark.asyncio
async def test_self_notifications_are_skipped():
    async with AsyncSessionLocal() as session:
        (alice,) = await _users(session, "alice")
        created = await notifications.create_notification(
            session, type=NotificationType.LIKE, content="liked", receiver_id=alice.id, sender_id=alice.id,
        )
        assert created is None
        assert await notifications.unread_count(session, alice.id) == 0


@pytest.mark.asyncio
async def test_mark_read_pushes_unread_count():
    async with AsyncSessionLocal() as session:
        alice, bob = await _users(session, "alice", "bob")
        await notifications.notify_follow(session, alice, bob.id)
        await session.commit()

        queue = manager.connect(bob.id)
        try:
            await notifications.mark_read(session, bob.id, all=True)
            event = await asyncio.wait_for(queue.get(), timeout=1)
        finally:
            manager.disconnect(bob.id, queue)
    assert event == {"type": "unread_count", "count": 0}
