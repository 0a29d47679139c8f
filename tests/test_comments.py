"""
Comment endpoint tests: creation with optional reply threading,
author-gated update and delete, and how comments show up in the news
detail view.
"""
import pytest
from httpx import AsyncClient


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _create_news(client: AsyncClient, headers: dict, title: str = "Commented") -> int:
    resp = await client.post(
        "/news",
        json={"title": title, "content": "Body", "thumbnail": "t.png", "category": "tech"},
        headers=headers,
    )
    assert resp.status_code == 201
    return resp.json()["news"]["id"]


async def _comment(client: AsyncClient, headers: dict, news_id: int, content: str, reply_to=None) -> dict:
    payload = {"content": content}
    if reply_to is not None:
        payload["replyTo"] = reply_to
    resp = await client.post(f"/news/{news_id}/comments", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["comment"]


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_comment(async_client: AsyncClient, make_user, auth_headers):
    user = await make_user("reader", avatar="r.png")
    headers = auth_headers(user)
    news_id = await _create_news(async_client, headers)

    resp = await async_client.post(
        f"/news/{news_id}/comments", json={"content": "Great article!"}, headers=headers
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Create comment successfully"
    comment = body["comment"]
    assert comment["content"] == "Great article!"
    assert comment["news"] == news_id
    assert comment["replyTo"] is None
    assert comment["author"] == {"id": user.id, "username": "reader", "avatar": "r.png"}
    assert comment["createdAt"] is not None


@pytest.mark.asyncio
async def test_create_comment_links_to_news(async_client: AsyncClient, make_user, auth_headers):
    """New comment ids appear in the article's comment list in insertion order."""
    user = await make_user()
    headers = auth_headers(user)
    news_id = await _create_news(async_client, headers)

    first = await _comment(async_client, headers, news_id, "one")
    second = await _comment(async_client, headers, news_id, "two", reply_to=first["id"])

    listed = (await async_client.get("/news")).json()["data"][0]
    assert listed["comments"] == [first["id"], second["id"]]


@pytest.mark.asyncio
async def test_create_comment_requires_token(async_client: AsyncClient, make_user, auth_headers):
    user = await make_user()
    news_id = await _create_news(async_client, auth_headers(user))
    resp = await async_client.post(f"/news/{news_id}/comments", json={"content": "anon"})
    assert resp.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{}, {"content": ""}, {"content": "   "}])
async def test_create_comment_blank_content(async_client: AsyncClient, make_user, auth_headers, payload):
    user = await make_user()
    headers = auth_headers(user)
    news_id = await _create_news(async_client, headers)
    resp = await async_client.post(f"/news/{news_id}/comments", json=payload, headers=headers)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_create_comment_news_not_found(async_client: AsyncClient, make_user, auth_headers):
    user = await make_user()
    resp = await async_client.post(
        "/news/99999/comments", json={"content": "Ghost"}, headers=auth_headers(user)
    )
    assert resp.status_code == 404
    assert resp.json()["message"] == "News not found."


@pytest.mark.asyncio
async def test_create_comment_unknown_parent(async_client: AsyncClient, make_user, auth_headers):
    user = await make_user()
    headers = auth_headers(user)
    news_id = await _create_news(async_client, headers)
    resp = await async_client.post(
        f"/news/{news_id}/comments", json={"content": "Orphan", "replyTo": 99999}, headers=headers
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Parent comment not found."


@pytest.mark.asyncio
async def test_reply_to_comment_of_another_article_is_accepted(
    async_client: AsyncClient, make_user, auth_headers
):
    """The parent only has to exist; it may belong to a different article."""
    user = await make_user()
    headers = auth_headers(user)
    news_x = await _create_news(async_client, headers, "X")
    news_y = await _create_news(async_client, headers, "Y")
    on_y = await _comment(async_client, headers, news_y, "on Y")

    reply = await _comment(async_client, headers, news_x, "reply from X", reply_to=on_y["id"])
    assert reply["news"] == news_x
    assert reply["replyTo"] == on_y["id"]


# ---------------------------------------------------------------------------
# Detail view
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_detail_nests_one_level_of_replies(async_client: AsyncClient, make_user, auth_headers):
    alice = await make_user("alice")
    bob = await make_user("bob")
    news_id = await _create_news(async_client, auth_headers(alice))

    older = await _comment(async_client, auth_headers(alice), news_id, "older top")
    newer = await _comment(async_client, auth_headers(bob), news_id, "newer top")
    reply = await _comment(async_client, auth_headers(bob), news_id, "reply", reply_to=older["id"])
    await _comment(async_client, auth_headers(alice), news_id, "reply to reply", reply_to=reply["id"])

    detail = (await async_client.get(f"/news/{news_id}")).json()["data"]
    comments = detail["comments"]

    # Top-level only, newest first.
    assert [c["id"] for c in comments] == [newer["id"], older["id"]]
    assert comments[0]["author"]["username"] == "bob"
    assert comments[0]["replies"] == []

    replies = comments[1]["replies"]
    assert [r["id"] for r in replies] == [reply["id"]]
    assert replies[0]["author"]["username"] == "bob"
    # Deeper replies exist but are not expanded.
    assert "replies" not in replies[0]


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_update_comment_by_author(async_client: AsyncClient, make_user, auth_headers):
    user = await make_user()
    headers = auth_headers(user)
    news_id = await _create_news(async_client, headers)
    comment = await _comment(async_client, headers, news_id, "typo")

    resp = await async_client.put(f"/comments/{comment['id']}", json={"content": "fixed"}, headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Updated comment successfully"
    assert body["data"]["content"] == "fixed"
    assert body["data"]["updatedAt"] is not None


@pytest.mark.asyncio
async def test_update_comment_by_non_author_forbidden(async_client: AsyncClient, make_user, auth_headers):
    author = await make_user()
    other = await make_user()
    news_id = await _create_news(async_client, auth_headers(author))
    comment = await _comment(async_client, auth_headers(author), news_id, "mine")

    resp = await async_client.put(
        f"/comments/{comment['id']}", json={"content": "hijacked"}, headers=auth_headers(other)
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"content": "ok", "author": 2}, {"news": 5}, {"content": " "}])
async def test_update_comment_rejects_other_fields(
    async_client: AsyncClient, make_user, auth_headers, payload
):
    user = await make_user()
    headers = auth_headers(user)
    news_id = await _create_news(async_client, headers)
    comment = await _comment(async_client, headers, news_id, "original")

    resp = await async_client.put(f"/comments/{comment['id']}", json=payload, headers=headers)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_update_comment_not_found(async_client: AsyncClient, make_user, auth_headers):
    user = await make_user()
    resp = await async_client.put("/comments/99999", json={"content": "x"}, headers=auth_headers(user))
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_comment_by_author(async_client: AsyncClient, make_user, auth_headers):
    user = await make_user()
    headers = auth_headers(user)
    news_id = await _create_news(async_client, headers)
    comment = await _comment(async_client, headers, news_id, "bye")

    resp = await async_client.delete(f"/comments/{comment['id']}", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Comment deleted successfully."

    listed = (await async_client.get("/news")).json()["data"][0]
    assert listed["comments"] == []


@pytest.mark.asyncio
async def test_delete_comment_by_non_author_forbidden(async_client: AsyncClient, make_user, auth_headers):
    author = await make_user()
    other = await make_user()
    news_id = await _create_news(async_client, auth_headers(author))
    comment = await _comment(async_client, auth_headers(author), news_id, "keep")

    resp = await async_client.delete(f"/comments/{comment['id']}", headers=auth_headers(other))
    assert resp.status_code == 403

    detail = (await async_client.get(f"/news/{news_id}")).json()["data"]
    assert [c["id"] for c in detail["comments"]] == [comment["id"]]


@pytest.mark.asyncio
async def test_delete_comment_removes_reply_thread(async_client: AsyncClient, make_user, auth_headers):
    user = await make_user()
    headers = auth_headers(user)
    news_id = await _create_news(async_client, headers)
    root = await _comment(async_client, headers, news_id, "root")
    child = await _comment(async_client, headers, news_id, "child", reply_to=root["id"])
    await _comment(async_client, headers, news_id, "grandchild", reply_to=child["id"])
    survivor = await _comment(async_client, headers, news_id, "unrelated")

    resp = await async_client.delete(f"/comments/{root['id']}", headers=headers)
    assert resp.status_code == 200

    listed = (await async_client.get("/news")).json()["data"][0]
    assert listed["comments"] == [survivor["id"]]

    # A deleted comment can no longer be replied to.
    resp = await async_client.post(
        f"/news/{news_id}/comments", json={"content": "late", "replyTo": child["id"]}, headers=headers
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_delete_comment_not_found(async_client: AsyncClient, make_user, auth_headers):
    user = await make_user()
    resp = await async_client.delete("/comments/99999", headers=auth_headers(user))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_news_removes_its_comments(async_client: AsyncClient, make_user, auth_headers):
    """Deleting an article also removes its comments and replies hanging off them elsewhere."""
    user = await make_user()
    headers = auth_headers(user)
    doomed = await _create_news(async_client, headers, "Doomed")
    kept = await _create_news(async_client, headers, "Kept")

    on_doomed = await _comment(async_client, headers, doomed, "on doomed")
    cross_reply = await _comment(async_client, headers, kept, "cross", reply_to=on_doomed["id"])
    plain = await _comment(async_client, headers, kept, "plain")

    resp = await async_client.delete(f"/news/{doomed}", headers=headers)
    assert resp.status_code == 200

    resp = await async_client.put(f"/comments/{on_doomed['id']}", json={"content": "x"}, headers=headers)
    assert resp.status_code == 404
    resp = await async_client.put(f"/comments/{cross_reply['id']}", json={"content": "x"}, headers=headers)
    assert resp.status_code == 404

    detail = (await async_client.get(f"/news/{kept}")).json()["data"]
    assert [c["id"] for c in detail["comments"]] == [plain["id"]]
