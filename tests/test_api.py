import pytest

API = "/api/v1"


def _create(client, headers, kind="posts", content="hello"):
    response = client.post(f"{API}/{kind}", json={"content": content}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def _comment(client, headers, item_id, content="nice", parent=None, kind="posts"):
    body = {"content": content}
    if parent:
        body["parent_comment_id"] = parent
    return client.post(f"{API}/{kind}/{item_id}/comments", json=body, headers=headers)


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["message"] == "Welcome to Community Feed"


@pytest.mark.parametrize("headers, detail", [
    ({}, "Missing user identity"),
    ({"X-User-Id": "mallory"}, "Unknown user"),
])
def test_identity_is_required(client, headers, detail):
    response = client.get(f"{API}/posts", headers=headers)

    assert response.status_code == 401
    assert response.json()["detail"] == detail


def test_create_and_list_items_newest_first(client, as_alice, as_bob):
    first = _create(client, as_alice, content="first")
    second = _create(client, as_alice, content="  second  ")

    assert second["content"] == "second"
    assert second["author"]["user_id"] == "alice"
    assert second["can_edit"] is True

    response = client.get(f"{API}/posts", params={"limit": 1}, headers=as_bob)
    page = response.json()
    assert page["total"] == 2
    assert page["has_more"] is True
    assert [item["id"] for item in page["items"]] == [second["id"]]
    assert page["items"][0]["can_edit"] is False

    page = client.get(f"{API}/posts", params={"page": 2, "limit": 1}, headers=as_bob).json()
    assert [item["id"] for item in page["items"]] == [first["id"]]
    assert page["has_more"] is False


def test_blank_item_is_rejected(client, as_alice):
    response = client.post(f"{API}/posts", json={"content": "   "}, headers=as_alice)

    assert response.status_code == 422


def test_kinds_are_separate(client, as_alice):
    item = _create(client, as_alice, kind="announcements")

    assert client.get(f"{API}/posts", headers=as_alice).json()["total"] == 0
    assert client.get(f"{API}/posts/{item['id']}", headers=as_alice).status_code == 404
    fetched = client.get(f"{API}/announcements/{item['id']}", headers=as_alice).json()
    assert fetched["kind"] == "announcements"


def test_only_author_edits_and_deletes_item(client, as_alice, as_bob):
    item = _create(client, as_alice)
    url = f"{API}/posts/{item['id']}"

    assert client.put(url, json={"content": "hijack"}, headers=as_bob).status_code == 403
    assert client.delete(url, headers=as_bob).status_code == 403

    response = client.put(url, json={"content": "better", "media_urls": ["https://cdn.example.com/x.png"]}, headers=as_alice)
    assert response.status_code == 200
    assert response.json()["content"] == "better"
    assert response.json()["media_urls"] == ["https://cdn.example.com/x.png"]

    assert client.delete(url, headers=as_alice).json() == {}
    assert client.get(url, headers=as_alice).status_code == 404


def test_toggle_like(client, as_alice, as_bob):
    item = _create(client, as_alice)
    url = f"{API}/posts/{item['id']}/toggle-like"

    assert client.post(url, headers=as_bob).json() == {"is_liked": True, "likes_count": 1}
    assert client.post(url, headers=as_alice).json() == {"is_liked": True, "likes_count": 2}
    assert client.post(url, headers=as_bob).json() == {"is_liked": False, "likes_count": 1}

    fetched = client.get(f"{API}/posts/{item['id']}", headers=as_alice).json()
    assert fetched["likes_count"] == 1
    assert fetched["is_liked"] is True


def test_comment_thread_shape_and_counts(client, as_alice, as_bob):
    item = _create(client, as_alice)
    older = _comment(client, as_bob, item["id"], "older").json()
    newer = _comment(client, as_alice, item["id"], "newer").json()
    reply_one = _comment(client, as_alice, item["id"], "reply one", parent=older["id"]).json()
    reply_two = _comment(client, as_bob, item["id"], "reply two", parent=older["id"]).json()

    assert reply_one["parent_comment_id"] == older["id"]

    page = client.get(f"{API}/posts/{item['id']}/comments", headers=as_alice).json()
    assert [comment["id"] for comment in page["comments"]] == [newer["id"], older["id"]]
    assert [reply["id"] for reply in page["comments"][1]["replies"]] == [reply_one["id"], reply_two["id"]]
    assert page["comments"][1]["has_replies"] is True
    assert page["pagination"]["total"] == 2
    assert page["pagination"]["total_with_replies"] == 4
    # alice owns the item, so she may delete bob's comment but not edit it
    assert page["comments"][1]["can_delete"] is True
    assert page["comments"][1]["can_edit"] is False

    count = client.get(f"{API}/posts/{item['id']}/comments/count", headers=as_bob).json()
    assert count == {"count": 4}
    assert client.get(f"{API}/posts/{item['id']}", headers=as_bob).json()["comments_count"] == 4


def test_comment_paging(client, as_alice):
    item = _create(client, as_alice)
    for number in range(3):
        _comment(client, as_alice, item["id"], f"comment {number}")

    url = f"{API}/posts/{item['id']}/comments"
    first = client.get(url, params={"limit": 2}, headers=as_alice).json()
    second = client.get(url, params={"limit": 2, "page": 2}, headers=as_alice).json()

    assert first["pagination"]["has_next_page"] is True
    assert first["pagination"]["total_pages"] == 2
    assert len(second["comments"]) == 1
    assert second["pagination"]["has_next_page"] is False
    assert second["pagination"]["has_prev_page"] is True


def test_replies_only_on_top_level_comments(client, as_alice):
    item = _create(client, as_alice)
    other = _create(client, as_alice)
    top = _comment(client, as_alice, item["id"]).json()
    reply = _comment(client, as_alice, item["id"], parent=top["id"]).json()

    deeper = _comment(client, as_alice, item["id"], parent=reply["id"])
    assert deeper.status_code == 400
    assert deeper.json()["detail"] == "Replies can only be added to top-level comments"

    elsewhere = _comment(client, as_alice, other["id"], parent=top["id"])
    assert elsewhere.status_code == 400


def test_comment_edit_and_delete_permissions(client, as_alice, as_bob):
    item = _create(client, as_alice)
    comment = _comment(client, as_bob, item["id"], "mine").json()
    url = f"{API}/posts/comments/{comment['id']}"

    assert client.put(url, json={"content": "not yours"}, headers=as_alice).status_code == 403

    edited = client.put(url, json={"content": "edited"}, headers=as_bob).json()
    assert edited["content"] == "edited"
    assert edited["can_edit"] is True

    # the item author may remove comments on their item
    assert client.delete(url, headers=as_alice).status_code == 200
    assert client.put(url, json={"content": "gone"}, headers=as_bob).status_code == 404


def test_deleting_comment_removes_replies(client, as_alice, as_bob):
    item = _create(client, as_alice)
    top = _comment(client, as_bob, item["id"]).json()
    _comment(client, as_alice, item["id"], parent=top["id"])
    _comment(client, as_bob, item["id"])

    client.delete(f"{API}/posts/comments/{top['id']}", headers=as_bob)

    count = client.get(f"{API}/posts/{item['id']}/comments/count", headers=as_bob).json()
    assert count == {"count": 1}


def test_deleting_item_removes_comments_and_likes(client, as_alice, as_bob, db_session_factory):
    from community_feed.modules.items.comments.models.comment import Comment
    from community_feed.modules.items.likes.models.like import Like

    item = _create(client, as_alice)
    top = _comment(client, as_bob, item["id"]).json()
    _comment(client, as_alice, item["id"], parent=top["id"])
    client.post(f"{API}/posts/{item['id']}/toggle-like", headers=as_bob)

    client.delete(f"{API}/posts/{item['id']}", headers=as_alice)

    db = db_session_factory()
    try:
        assert db.query(Comment).count() == 0
        assert db.query(Like).count() == 0
    finally:
        db.close()


def test_comment_routes_check_kind(client, as_alice):
    item = _create(client, as_alice, kind="feedback")
    comment = _comment(client, as_alice, item["id"], kind="feedback").json()

    assert client.put(f"{API}/posts/comments/{comment['id']}", json={"content": "x"}, headers=as_alice).status_code == 404
    assert client.delete(f"{API}/announcements/comments/{comment['id']}", headers=as_alice).status_code == 404
    assert client.get(f"{API}/posts/{item['id']}/comments", headers=as_alice).status_code == 404


def test_include_replies_false(client, as_alice):
    item = _create(client, as_alice)
    top = _comment(client, as_alice, item["id"]).json()
    _comment(client, as_alice, item["id"], parent=top["id"])

    page = client.get(
        f"{API}/posts/{item['id']}/comments", params={"include_replies": "false"}, headers=as_alice
    ).json()

    assert page["comments"][0]["replies"] == []
    assert page["comments"][0]["has_replies"] is True
    assert page["pagination"]["total_with_replies"] is None
