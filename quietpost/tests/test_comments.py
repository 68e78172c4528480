import pytest
from httpx import AsyncClient

async def create_post(test_client: AsyncClient, auth_headers, user_id: str = "u1") -> int:
    response = await test_client.post(
        "/api/v1/posts/",
        json={"title": "Night walk", "content": "The streets were empty and quiet tonight"},
        headers=auth_headers(user_id)
    )
    assert response.status_code == 201
    return response.json()["id"]

@pytest.mark.asyncio
async def test_anonymous_comment_quota(test_client: AsyncClient, auth_headers, anon_headers):
    """Three messages are accepted, the fourth is refused"""
    post_id = await create_post(test_client, auth_headers)
    headers = anon_headers("a1-session")

    for i in range(3):
        response = await test_client.post(
            f"/api/v1/posts/{post_id}/comments",
            json={"content": f"message {i}"},
            headers=headers
        )
        assert response.status_code == 201
        data = response.json()
        assert data["accepted"] is True
        assert data["thread_key"] == f"anon_a1-session_post_{post_id}"
        assert data["remaining"] == 2 - i
        assert data["comment"]["is_mine"] is True

    response = await test_client.post(
        f"/api/v1/posts/{post_id}/comments",
        json={"content": "message 0"},
        headers=headers
    )
    assert response.status_code == 409

    response = await test_client.get(f"/api/v1/posts/{post_id}/threads", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total_comments"] == 3
    thread, = data["threads"]
    assert len(thread["comments"]) == 3
    assert thread["viewer_reply_count"] == 3
    assert thread["viewer_can_reply"] is False
    assert thread["thread_key"] == f"anon_a1-session_post_{post_id}"

@pytest.mark.asyncio
async def test_new_anonymous_session_issued(test_client: AsyncClient, auth_headers):
    post_id = await create_post(test_client, auth_headers)

    response = await test_client.post(f"/api/v1/posts/{post_id}/comments", json={"content": "hi"})

    assert response.status_code == 201
    data = response.json()
    anonymous_id = data["anonymous_id"]
    assert anonymous_id
    assert response.headers["X-Anonymous-Id"] == anonymous_id
    assert data["thread_key"] == f"anon_{anonymous_id}_post_{post_id}"

    # Reusing the issued id continues the same thread
    response = await test_client.post(
        f"/api/v1/posts/{post_id}/comments",
        json={"content": "me again"},
        headers={"X-Anonymous-Id": anonymous_id}
    )
    assert response.json()["thread_key"] == data["thread_key"]
    assert response.json()["anonymous_id"] is None

@pytest.mark.asyncio
async def test_author_reply(test_client: AsyncClient, auth_headers, anon_headers):
    post_id = await create_post(test_client, auth_headers)
    comment = await test_client.post(
        f"/api/v1/posts/{post_id}/comments",
        json={"content": "question"},
        headers=anon_headers("a1-session")
    )
    thread_key = comment.json()["thread_key"]

    response = await test_client.post(
        f"/api/v1/posts/{post_id}/threads/{thread_key}/replies",
        json={"content": "answer"},
        headers=auth_headers("u1")
    )
    assert response.status_code == 201
    assert response.json() == {"success": True, "thread_key": thread_key}

    response = await test_client.get(f"/api/v1/posts/{post_id}/threads", headers=anon_headers("a1-session"))
    thread, = response.json()["threads"]
    assert [c["is_author_reply"] for c in thread["comments"]] == [False, True]
    assert [c["is_mine"] for c in thread["comments"]] == [True, False]
    assert thread["viewer_reply_count"] == 1

@pytest.mark.asyncio
async def test_author_reply_forbidden_for_others(test_client: AsyncClient, auth_headers, anon_headers):
    post_id = await create_post(test_client, auth_headers)
    comment = await test_client.post(
        f"/api/v1/posts/{post_id}/comments",
        json={"content": "question"},
        headers=anon_headers("a1-session")
    )
    thread_key = comment.json()["thread_key"]
    before = (await test_client.get(f"/api/v1/posts/{post_id}/threads")).json()

    response = await test_client.post(
        f"/api/v1/posts/{post_id}/threads/{thread_key}/replies",
        json={"content": "not mine to answer"},
        headers=anon_headers("a2-session")
    )
    assert response.status_code == 403

    response = await test_client.post(
        f"/api/v1/posts/{post_id}/threads/{thread_key}/replies",
        json={"content": "not mine to answer"}
    )
    assert response.status_code == 401

    after = (await test_client.get(f"/api/v1/posts/{post_id}/threads")).json()
    assert before == after

@pytest.mark.asyncio
async def test_author_reply_unknown_thread(test_client: AsyncClient, auth_headers):
    post_id = await create_post(test_client, auth_headers)

    response = await test_client.post(
        f"/api/v1/posts/{post_id}/threads/anon_nobody-here_post_{post_id}/replies",
        json={"content": "hello?"},
        headers=auth_headers("u1")
    )
    assert response.status_code == 404

@pytest.mark.asyncio
async def test_thread_keys_hidden_from_other_readers(test_client: AsyncClient, auth_headers, anon_headers):
    post_id = await create_post(test_client, auth_headers)
    await test_client.post(
        f"/api/v1/posts/{post_id}/comments",
        json={"content": "question"},
        headers=anon_headers("a1-session")
    )

    stranger = (await test_client.get(f"/api/v1/posts/{post_id}/threads", headers=anon_headers("a2-session"))).json()
    author = (await test_client.get(f"/api/v1/posts/{post_id}/threads", headers=auth_headers("u1"))).json()

    assert stranger["threads"][0]["thread_key"] is None
    assert stranger["threads"][0]["viewer_can_reply"] is False
    assert author["threads"][0]["thread_key"] == f"anon_a1-session_post_{post_id}"
    assert author["threads"][0]["viewer_can_reply"] is True
    assert "anonymous_id" not in author["threads"][0]["comments"][0]

@pytest.mark.asyncio
async def test_invalid_comment_content(test_client: AsyncClient, auth_headers, anon_headers):
    post_id = await create_post(test_client, auth_headers)

    blank = await test_client.post(
        f"/api/v1/posts/{post_id}/comments",
        json={"content": "    "},
        headers=anon_headers("a1-session")
    )
    too_long = await test_client.post(
        f"/api/v1/posts/{post_id}/comments",
        json={"content": "x" * 2001},
        headers=anon_headers("a1-session")
    )

    assert blank.status_code == 422
    assert too_long.status_code == 422

@pytest.mark.asyncio
async def test_comment_on_missing_post(test_client: AsyncClient, anon_headers):
    response = await test_client.post(
        "/api/v1/posts/999/comments",
        json={"content": "hello"},
        headers=anon_headers("a1-session")
    )
    assert response.status_code == 404

    response = await test_client.get("/api/v1/posts/999/threads")
    assert response.status_code == 404

@pytest.mark.asyncio
async def test_blank_comment_on_missing_post(test_client: AsyncClient, anon_headers):
    response = await test_client.post(
        "/api/v1/posts/999/comments",
        json={"content": "   "},
        headers=anon_headers("a1-session")
    )
    assert response.status_code == 404

@pytest.mark.asyncio
async def test_comment_count(test_client: AsyncClient, auth_headers, anon_headers):
    post_id = await create_post(test_client, auth_headers)
    for content in ("one", "two"):
        await test_client.post(
            f"/api/v1/posts/{post_id}/comments",
            json={"content": content},
            headers=anon_headers("a1-session")
        )
    await test_client.post(
        f"/api/v1/posts/{post_id}/comments",
        json={"content": "three"},
        headers=anon_headers("a2-session")
    )

    response = await test_client.get(f"/api/v1/posts/{post_id}/comments/count", headers=anon_headers("a1-session"))

    assert response.status_code == 200
    assert response.json() == {"post_id": post_id, "total": 3, "mine": 2, "remaining": 1}

@pytest.mark.asyncio
async def test_malformed_anonymous_id(test_client: AsyncClient, auth_headers):
    post_id = await create_post(test_client, auth_headers)

    response = await test_client.post(
        f"/api/v1/posts/{post_id}/comments",
        json={"content": "hello"},
        headers={"X-Anonymous-Id": "bad_id"}
    )
    assert response.status_code == 400
