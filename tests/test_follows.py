def _follow(client, actor, target):
    return client.post("/api/follow", json={"targetUserId": target.id}, headers=actor.headers)


def _unfollow(client, actor, target):
    return client.request("DELETE", "/api/follow", json={"targetUserId": target.id}, headers=actor.headers)


def test_follow_and_unfollow(client, make_user):
    alice, bob = make_user("alice"), make_user("bob")

    resp = _follow(client, alice, bob)
    assert resp.status_code == 201
    body = resp.json()
    assert body["followerId"] == alice.id
    assert body["followingId"] == bob.id
    assert body["following"]["username"] == "bob"

    status = client.get(f"/api/follow/status?targetUserId={bob.id}", headers=alice.headers)
    assert status.json() == {"isFollowing": True}

    resp = _unfollow(client, alice, bob)
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "unfollowed": bob.id}

    status = client.get(f"/api/follow/status?targetUserId={bob.id}", headers=alice.headers)
    assert status.json() == {"isFollowing": False}


def test_follow_twice_is_rejected(client, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    assert _follow(client, alice, bob).status_code == 201
    resp = _follow(client, alice, bob)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "You are already following this user"


def test_cannot_follow_yourself(client, make_user):
    alice = make_user("alice")
    resp = _follow(client, alice, alice)
    assert resp.status_code == 400


def test_follow_unknown_user(client, make_user):
    alice = make_user("alice")
    resp = client.post("/api/follow", json={"targetUserId": "missing"}, headers=alice.headers)
    assert resp.status_code == 404


def test_unfollow_when_not_following(client, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    resp = _unfollow(client, alice, bob)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "You are not following this user"


def test_follow_requires_auth(client, make_user):
    bob = make_user("bob")
    assert client.post("/api/follow", json={"targetUserId": bob.id}).status_code == 401
    assert client.request("DELETE", "/api/follow", json={"targetUserId": bob.id}).status_code == 401


def test_follow_missing_body_field(client, make_user):
    alice = make_user("alice")
    resp = client.post("/api/follow", json={}, headers=alice.headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid request data"


def test_follow_sends_notification(client, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    _follow(client, alice, bob)
    resp = client.get("/api/notifications", headers=bob.headers)
    notifications = resp.json()["notifications"]
    assert len(notifications) == 1
    assert notifications[0]["type"] == "FOLLOW"
    assert notifications[0]["senderId"] == alice.id
    assert notifications[0]["linkUrl"] == "/u/alice"
    assert resp.json()["unreadCount"] == 1


def test_follow_counts(client, make_user):
    alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")
    _follow(client, alice, carol)
    _follow(client, bob, carol)
    _follow(client, carol, alice)

    followers = client.get(f"/api/follow/count?userId={carol.id}&type=followers")
    following = client.get(f"/api/follow/count?userId={carol.id}&type=following")
    assert followers.json() == {"count": 2}
    assert following.json() == {"count": 1}


def test_follow_count_rejects_unknown_type(client, make_user):
    alice = make_user("alice")
    resp = client.get(f"/api/follow/count?userId={alice.id}&type=friends")
    assert resp.status_code == 400
