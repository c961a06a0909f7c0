def _comment(client, user, asset_id, content="Great work", parent_id=None):
    body = {"assetId": asset_id, "content": content}
    if parent_id:
        body["parentId"] = parent_id
    return client.post("/api/comments", json=body, headers=user.headers)


def test_create_and_list_comments(client, make_user, make_asset):
    alice, bob = make_user("alice"), make_user("bob")
    asset = make_asset(alice)

    resp = _comment(client, bob, asset["id"])
    assert resp.status_code == 201
    comment = resp.json()
    assert comment["user"]["username"] == "bob"
    assert comment["parentId"] is None

    reply = _comment(client, alice, asset["id"], "Thanks!", parent_id=comment["id"]).json()

    listing = client.get(f"/api/comments?assetId={asset['id']}").json()
    assert listing["pagination"]["totalCount"] == 1
    thread = listing["comments"][0]
    assert thread["id"] == comment["id"]
    assert [r["id"] for r in thread["replies"]] == [reply["id"]]


def test_reply_to_reply_joins_root_thread(client, make_user, make_asset):
    alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")
    asset = make_asset(alice)
    root = _comment(client, bob, asset["id"]).json()
    reply = _comment(client, carol, asset["id"], "Agreed", parent_id=root["id"]).json()
    nested = _comment(client, bob, asset["id"], "Thanks carol", parent_id=reply["id"]).json()
    assert nested["parentId"] == root["id"]

    notes = client.get("/api/notifications", headers=carol.headers).json()["notifications"]
    assert any("replied to your comment" in n["content"] for n in notes)


def test_comment_notifies_asset_owner_once(client, make_user, make_asset):
    alice, bob = make_user("alice"), make_user("bob")
    asset = make_asset(alice)
    _comment(client, bob, asset["id"])
    _comment(client, alice, asset["id"], "My own comment")

    notes = client.get("/api/notifications", headers=alice.headers).json()["notifications"]
    assert len(notes) == 1
    assert notes[0]["type"] == "COMMENT"
    assert notes[0]["linkUrl"] == f"/assets/{asset['id']}#comments"


def test_comments_sorting_and_pagination(client, make_user, make_asset):
    alice = make_user("alice")
    asset = make_asset(alice)
    ids = [_comment(client, alice, asset["id"], f"comment {i}").json()["id"] for i in range(3)]

    oldest = client.get(f"/api/comments?assetId={asset['id']}&sort=oldest&limit=2").json()
    assert [c["id"] for c in oldest["comments"]] == ids[:2]
    assert oldest["pagination"] == {"page": 1, "limit": 2, "totalCount": 3, "totalPages": 2}


def test_comment_on_missing_asset(client, make_user):
    bob = make_user("bob")
    assert _comment(client, bob, "missing").status_code == 404


def test_comment_on_private_asset_of_someone_else(client, make_user, make_asset):
    alice, bob = make_user("alice"), make_user("bob")
    asset = make_asset(alice, is_public=False)
    assert _comment(client, bob, asset["id"]).status_code == 403
    assert client.get(f"/api/comments?assetId={asset['id']}").status_code == 403


def test_parent_must_belong_to_asset(client, make_user, make_asset):
    alice = make_user("alice")
    first, second = make_asset(alice), make_asset(alice, title="Other asset")
    parent = _comment(client, alice, first["id"]).json()
    resp = _comment(client, alice, second["id"], parent_id=parent["id"])
    assert resp.status_code == 400
    assert _comment(client, alice, first["id"], parent_id="missing").status_code == 404


def test_comment_content_length(client, make_user, make_asset):
    alice = make_user("alice")
    asset = make_asset(alice)
    assert _comment(client, alice, asset["id"], "").status_code == 400
    assert _comment(client, alice, asset["id"], "x" * 501).status_code == 400


def test_update_comment_author_only(client, make_user, make_asset):
    alice, bob = make_user("alice"), make_user("bob")
    asset = make_asset(alice)
    comment = _comment(client, bob, asset["id"]).json()

    resp = client.patch(f"/api/comments/{comment['id']}", json={"content": "Edited"}, headers=bob.headers)
    assert resp.status_code == 200
    assert resp.json()["content"] == "Edited"

    resp = client.patch(f"/api/comments/{comment['id']}", json={"content": "Hijack"}, headers=alice.headers)
    assert resp.status_code == 403


def test_delete_comment_permissions(client, make_user, make_asset):
    alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")
    asset = make_asset(alice)
    by_bob = _comment(client, bob, asset["id"]).json()
    another = _comment(client, bob, asset["id"], "Second").json()

    assert client.delete(f"/api/comments/{by_bob['id']}", headers=carol.headers).status_code == 403
    assert client.delete(f"/api/comments/{by_bob['id']}", headers=bob.headers).json() == {"success": True}
    # the asset owner may remove comments left by others
    assert client.delete(f"/api/comments/{another['id']}", headers=alice.headers).status_code == 200
    assert client.get(f"/api/comments?assetId={asset['id']}").json()["comments"] == []


def test_delete_comment_removes_replies(client, make_user, make_asset):
    alice, bob = make_user("alice"), make_user("bob")
    asset = make_asset(alice)
    root = _comment(client, bob, asset["id"]).json()
    _comment(client, alice, asset["id"], "reply", parent_id=root["id"])
    client.delete(f"/api/comments/{root['id']}", headers=bob.headers)
    asset_after = client.get(f"/api/assets/{asset['id']}").json()
    assert asset_after["comments"] == 0


def test_delete_missing_comment(client, make_user):
    alice = make_user("alice")
    assert client.delete("/api/comments/missing", headers=alice.headers).status_code == 404


def test_comment_mutations_require_auth(client, make_user, make_asset):
    alice = make_user("alice")
    asset = make_asset(alice)
    assert client.post("/api/comments", json={"assetId": asset["id"], "content": "hi"}).status_code == 401
    assert client.patch("/api/comments/x", json={"content": "hi"}).status_code == 401
    assert client.delete("/api/comments/x").status_code == 401
