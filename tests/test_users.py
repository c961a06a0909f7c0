def _follow(client, actor, target):
    resp = client.post("/api/follow", json={"targetUserId": target.id}, headers=actor.headers)
    assert resp.status_code == 201


def test_public_profile_with_stats(client, make_user, make_project, make_asset):
    alice, bob = make_user("alice"), make_user("bob")
    make_project(alice)
    make_asset(alice)
    make_asset(alice, title="Tileset")
    _follow(client, bob, alice)

    resp = client.get("/api/users/alice")
    assert resp.status_code == 200
    body = resp.json()
    assert body["username"] == "alice"
    assert body["stats"] == {"assets": 2, "projects": 1, "followers": 1, "following": 0}
    assert body["isFollowing"] is False
    assert body["isCurrentUser"] is False
    assert "email" not in body


def test_profile_viewer_flags(client, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    _follow(client, bob, alice)
    assert client.get("/api/users/alice", headers=bob.headers).json()["isFollowing"] is True
    assert client.get("/api/users/alice", headers=alice.headers).json()["isCurrentUser"] is True


def test_unknown_profile(client):
    assert client.get("/api/users/nobody").status_code == 404


def test_followers_and_following_pages(client, make_user):
    alice = make_user("alice")
    fans = [make_user(f"fan{i}") for i in range(3)]
    for fan in fans:
        _follow(client, fan, alice)
    _follow(client, alice, fans[0])

    resp = client.get("/api/users/alice/followers?page=1&limit=2", headers=fans[0].headers)
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["followers"]) == 2
    assert body["pagination"] == {"page": 1, "limit": 2, "totalCount": 3, "totalPages": 2}

    second = client.get("/api/users/alice/followers?page=2&limit=2").json()
    assert len(second["followers"]) == 1

    following = client.get("/api/users/alice/following").json()
    assert [entry["username"] for entry in following["following"]] == ["fan0"]
    assert following["pagination"]["limit"] == 10
    assert following["following"][0]["followedAt"]


def test_follower_entries_mark_viewer(client, make_user):
    alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")
    _follow(client, bob, alice)
    _follow(client, carol, alice)
    _follow(client, bob, carol)

    entries = client.get("/api/users/alice/followers", headers=bob.headers).json()["followers"]
    by_name = {entry["username"]: entry for entry in entries}
    assert by_name["bob"]["isCurrentUser"] is True
    assert by_name["carol"]["isFollowing"] is True


def test_followers_rejects_bad_pagination(client, make_user):
    make_user("alice")
    assert client.get("/api/users/alice/followers?page=0").status_code == 400
    assert client.get("/api/users/alice/followers?limit=101").status_code == 400


def test_update_profile(client, make_user):
    alice = make_user("alice")
    resp = client.patch("/api/users/profile", json={
        "username": "alice_art",
        "bio": "Pixel artist",
        "social": {"github": "https://github.com/alice"},
    }, headers=alice.headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["username"] == "alice_art"
    assert body["bio"] == "Pixel artist"
    assert body["social"]["github"] == "https://github.com/alice"
    assert client.get("/api/users/alice_art").status_code == 200


def test_update_profile_username_taken(client, make_user):
    alice = make_user("alice")
    make_user("bob")
    resp = client.patch("/api/users/profile", json={"username": "bob"}, headers=alice.headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Username is already taken"


def test_update_profile_validates_username(client, make_user):
    alice = make_user("alice")
    resp = client.patch("/api/users/profile", json={"username": "a!"}, headers=alice.headers)
    assert resp.status_code == 400


def test_update_profile_requires_auth(client):
    assert client.patch("/api/users/profile", json={"username": "ghost"}).status_code == 401
