"""
Comment endpoint tests: envelopes, restricted visibility and deletion.
"""
import pytest
from httpx import AsyncClient


async def _create_article(client: AsyncClient, headers: dict, title: str = "Commentable") -> str:
    resp = await client.post(
        "/api/articles",
        json={"article": {"title": title, "description": "d", "body": "b"}},
        headers=headers,
    )
    assert resp.status_code == 201
    return resp.json()["article"]["slug"]


@pytest.mark.asyncio
async def test_add_and_list_comments(async_client: AsyncClient, make_user, auth_header):
    await make_user("demo", demo=True)
    await make_user("alice")
    slug = await _create_article(async_client, auth_header("demo"))

    resp = await async_client.post(
        f"/api/articles/{slug}/comments",
        json={"comment": {"body": "Seeded"}},
        headers=auth_header("demo"),
    )
    assert resp.status_code == 201
    comment = resp.json()["comment"]
    assert comment["body"] == "Seeded"
    assert comment["author"]["username"] == "demo"
    assert {"id", "createdAt", "updatedAt"} <= comment.keys()

    await async_client.post(
        f"/api/articles/{slug}/comments",
        json={"comment": {"body": "Mine"}},
        headers=auth_header("alice"),
    )

    anonymous = (await async_client.get(f"/api/articles/{slug}/comments")).json()
    assert [c["body"] for c in anonymous["comments"]] == ["Seeded"]

    as_alice = (await async_client.get(f"/api/articles/{slug}/comments", headers=auth_header("alice"))).json()
    assert [c["body"] for c in as_alice["comments"]] == ["Mine", "Seeded"]


@pytest.mark.asyncio
async def test_blank_comment_returns_422(async_client: AsyncClient, make_user, auth_header):
    await make_user("alice")
    slug = await _create_article(async_client, auth_header("alice"))
    resp = await async_client.post(
        f"/api/articles/{slug}/comments", json={"comment": {"body": ""}}, headers=auth_header("alice")
    )
    assert resp.status_code == 422
    assert resp.json() == {"errors": {"body": ["can't be blank"]}}


@pytest.mark.asyncio
async def test_comment_on_missing_article_returns_404(async_client: AsyncClient, make_user, auth_header):
    await make_user("alice")
    resp = await async_client.post(
        "/api/articles/nope/comments", json={"comment": {"body": "hi"}}, headers=auth_header("alice")
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_comment(async_client: AsyncClient, make_user, auth_header):
    await make_user("alice")
    await make_user("bob")
    slug = await _create_article(async_client, auth_header("alice"))
    comment_id = (
        await async_client.post(
            f"/api/articles/{slug}/comments", json={"comment": {"body": "hi"}}, headers=auth_header("alice")
        )
    ).json()["comment"]["id"]

    # someone else's comment is reported as missing
    resp = await async_client.delete(f"/api/articles/{slug}/comments/{comment_id}", headers=auth_header("bob"))
    assert resp.status_code == 404

    resp = await async_client.delete(f"/api/articles/{slug}/comments/{comment_id}", headers=auth_header("alice"))
    assert resp.status_code == 204

    listing = await async_client.get(f"/api/articles/{slug}/comments", headers=auth_header("alice"))
    assert listing.json() == {"comments": []}


@pytest.mark.asyncio
async def test_deleting_article_removes_its_comments(async_client: AsyncClient, make_user, auth_header):
    await make_user("demo", demo=True)
    slug = await _create_article(async_client, auth_header("demo"))
    await async_client.post(
        f"/api/articles/{slug}/comments", json={"comment": {"body": "hi"}}, headers=auth_header("demo")
    )
    await async_client.delete(f"/api/articles/{slug}", headers=auth_header("demo"))

    slug = await _create_article(async_client, auth_header("demo"))
    assert (await async_client.get(f"/api/articles/{slug}/comments")).json() == {"comments": []}
