def _open(client, user, other):
    return client.post("/api/chats", json={"userId": other.id}, headers=user.headers)


def test_open_chat_creates_once(client, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    first = _open(client, alice, bob)
    assert first.status_code == 201
    assert first.json()["participants"][0]["username"] == "bob"

    again = _open(client, bob, alice)
    assert again.status_code == 200
    assert again.json()["id"] == first.json()["id"]


def test_open_chat_errors(client, make_user):
    alice = make_user("alice")
    assert _open(client, alice, alice).status_code == 400
    resp = client.post("/api/chats", json={"userId": "missing"}, headers=alice.headers)
    assert resp.status_code == 404
    assert client.post("/api/chats", json={"userId": alice.id}).status_code == 401


def test_send_message_and_read(client, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    chat_id = _open(client, alice, bob).json()["id"]

    resp = client.post(f"/api/chats/{chat_id}/messages", json={"content": "Hi Bob"}, headers=alice.headers)
    assert resp.status_code == 201
    message = resp.json()
    assert message["senderId"] == alice.id
    assert message["receiverId"] == bob.id
    assert message["read"] is False
    client.post(f"/api/chats/{chat_id}/messages", json={"content": "Are you there?"}, headers=alice.headers)

    summary = client.get("/api/chats", headers=bob.headers).json()["chats"][0]
    assert summary["unreadCount"] == 2
    assert summary["lastMessage"]["content"] == "Are you there?"
    assert summary["participants"][0]["username"] == "alice"

    detail = client.get(f"/api/chats/{chat_id}", headers=bob.headers).json()
    assert [m["content"] for m in detail["messages"]] == ["Hi Bob", "Are you there?"]
    assert client.get("/api/chats", headers=bob.headers).json()["chats"][0]["unreadCount"] == 0


def test_message_notifies_receiver(client, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    chat_id = _open(client, alice, bob).json()["id"]
    client.post(f"/api/chats/{chat_id}/messages", json={"content": "ping"}, headers=alice.headers)
    note = client.get("/api/notifications", headers=bob.headers).json()["notifications"][0]
    assert note["type"] == "MESSAGE"
    assert note["linkUrl"] == f"/chat?with={alice.id}"


def test_mark_chat_read(client, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    chat_id = _open(client, alice, bob).json()["id"]
    client.post(f"/api/chats/{chat_id}/messages", json={"content": "ping"}, headers=alice.headers)
    assert client.post(f"/api/chats/{chat_id}/read", headers=bob.headers).json() == {"success": True}
    assert client.get("/api/chats", headers=bob.headers).json()["chats"][0]["unreadCount"] == 0


def test_non_participants_get_404(client, make_user):
    alice, bob, eve = make_user("alice"), make_user("bob"), make_user("eve")
    chat_id = _open(client, alice, bob).json()["id"]
    assert client.get(f"/api/chats/{chat_id}", headers=eve.headers).status_code == 404
    resp = client.post(f"/api/chats/{chat_id}/messages", json={"content": "hi"}, headers=eve.headers)
    assert resp.status_code == 404
    assert client.post(f"/api/chats/{chat_id}/read", headers=eve.headers).status_code == 404


def test_message_length_limits(client, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    chat_id = _open(client, alice, bob).json()["id"]
    url = f"/api/chats/{chat_id}/messages"
    assert client.post(url, json={"content": ""}, headers=alice.headers).status_code == 400
    assert client.post(url, json={"content": "x" * 5001}, headers=alice.headers).status_code == 400


def test_chats_ordered_by_recent_activity(client, make_user):
    alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")
    with_bob = _open(client, alice, bob).json()["id"]
    with_carol = _open(client, alice, carol).json()["id"]
    client.post(f"/api/chats/{with_bob}/messages", json={"content": "latest"}, headers=bob.headers)
    chats = client.get("/api/chats", headers=alice.headers).json()["chats"]
    assert [c["id"] for c in chats] == [with_bob, with_carol]
