def _like(client, user, **target):
    return client.post("/api/likes", json=target, headers=user.headers)


def _unlike(client, user, **target):
    return client.request("DELETE", "/api/likes", json=target, headers=user.headers)


def test_like_and_unlike_asset(client, make_user, make_asset):
    alice, bob = make_user("alice"), make_user("bob")
    asset = make_asset(alice)

    resp = _like(client, bob, assetId=asset["id"])
    assert resp.status_code == 201
    assert resp.json()["assetId"] == asset["id"]
    assert resp.json()["projectId"] is None

    detail = client.get(f"/api/assets/{asset['id']}", headers=bob.headers).json()
    assert detail["likes"] == 1
    assert detail["likedByUser"] is True

    assert _unlike(client, bob, assetId=asset["id"]).json() == {"success": True}
    assert client.get(f"/api/assets/{asset['id']}").json()["likes"] == 0


def test_like_twice(client, make_user, make_asset):
    alice, bob = make_user("alice"), make_user("bob")
    asset = make_asset(alice)
    _like(client, bob, assetId=asset["id"])
    resp = _like(client, bob, assetId=asset["id"])
    assert resp.status_code == 400
    assert resp.json()["detail"] == "You have already liked this asset"


def test_unlike_without_like(client, make_user, make_project):
    alice, bob = make_user("alice"), make_user("bob")
    project = make_project(alice)
    resp = _unlike(client, bob, projectId=project["id"])
    assert resp.status_code == 404


def test_like_project_notifies_owner(client, make_user, make_project):
    alice, bob = make_user("alice"), make_user("bob")
    project = make_project(alice)
    assert _like(client, bob, projectId=project["id"]).status_code == 201

    assert client.get(f"/api/projects/{project['id']}", headers=bob.headers).json()["likedByUser"] is True
    note = client.get("/api/notifications", headers=alice.headers).json()["notifications"][0]
    assert note["type"] == "LIKE"
    assert note["linkUrl"] == f"/u/alice/projects/{project['id']}"


def test_liking_own_asset_sends_no_notification(client, make_user, make_asset):
    alice = make_user("alice")
    asset = make_asset(alice)
    _like(client, alice, assetId=asset["id"])
    assert client.get("/api/notifications", headers=alice.headers).json()["notifications"] == []


def test_like_requires_exactly_one_target(client, make_user, make_asset, make_project):
    alice = make_user("alice")
    asset, project = make_asset(alice), make_project(alice)
    assert _like(client, alice).status_code == 400
    assert _like(client, alice, assetId=asset["id"], projectId=project["id"]).status_code == 400


def test_like_missing_target(client, make_user):
    alice = make_user("alice")
    resp = _like(client, alice, assetId="missing")
    assert resp.status_code == 404


def test_like_requires_auth(client):
    assert client.post("/api/likes", json={"assetId": "x"}).status_code == 401
    assert client.request("DELETE", "/api/likes", json={"assetId": "x"}).status_code == 401
