"""
Direct service-layer tests for comments: restricted visibility, creation
preconditions and owner-scoped deletion.
"""
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.exceptions import Forbidden, NotFound, ValidationError
from conduit.schemas import ArticleCreate
from conduit.services import article_service, comment_service


async def _create_article(db: AsyncSession, author: str, title: str = "Commentable") -> str:
    article = await article_service.create_article(
        db, ArticleCreate(title=title, description="d", body="b"), author
    )
    return article["slug"]


# ---------------------------------------------------------------------------
# get_comments
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_anonymous_viewer_sees_demo_comments_only(db_session: AsyncSession, make_user):
    await make_user("demo", demo=True)
    await make_user("alice")
    slug = await _create_article(db_session, "demo")
    await comment_service.add_comment(db_session, "from demo", slug, "demo")
    await comment_service.add_comment(db_session, "from alice", slug, "alice")

    comments = await comment_service.get_comments(db_session, slug)
    assert [c["body"] for c in comments] == ["from demo"]


@pytest.mark.asyncio
async def test_viewer_sees_own_and_demo_comments(db_session: AsyncSession, make_user):
    await make_user("demo", demo=True)
    await make_user("alice")
    await make_user("bob")
    slug = await _create_article(db_session, "demo")
    await comment_service.add_comment(db_session, "from demo", slug, "demo")
    await comment_service.add_comment(db_session, "from alice", slug, "alice")
    await comment_service.add_comment(db_session, "from bob", slug, "bob")

    comments = await comment_service.get_comments(db_session, slug, "alice")
    assert [c["body"] for c in comments] == ["from alice", "from demo"]


@pytest.mark.asyncio
async def test_comments_are_scoped_to_article(db_session: AsyncSession, make_user):
    await make_user("demo", demo=True)
    first = await _create_article(db_session, "demo", "First")
    second = await _create_article(db_session, "demo", "Second")
    await comment_service.add_comment(db_session, "on first", first, "demo")

    assert await comment_service.get_comments(db_session, second) == []


@pytest.mark.asyncio
async def test_comments_for_unknown_article_is_empty(db_session: AsyncSession):
    assert await comment_service.get_comments(db_session, "missing") == []


# ---------------------------------------------------------------------------
# add_comment
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_add_comment_returns_dto(db_session: AsyncSession, make_user):
    await make_user("alice", bio="hi")
    slug = await _create_article(db_session, "alice")
    comment = await comment_service.add_comment(db_session, "Great!", slug, "alice")
    assert comment["body"] == "Great!"
    assert isinstance(comment["id"], int)
    assert comment["createdAt"] is not None
    assert comment["author"] == {"username": "alice", "bio": "hi", "image": None, "following": False}


@pytest.mark.asyncio
@pytest.mark.parametrize("body", ["", None])
async def test_add_comment_blank_body(db_session: AsyncSession, make_user, body):
    await make_user("alice")
    slug = await _create_article(db_session, "alice")
    with pytest.raises(ValidationError) as exc_info:
        await comment_service.add_comment(db_session, body, slug, "alice")
    assert exc_info.value.body == {"errors": {"body": ["can't be blank"]}}


@pytest.mark.asyncio
async def test_add_comment_unknown_article(db_session: AsyncSession, make_user):
    await make_user("alice")
    with pytest.raises(NotFound) as exc_info:
        await comment_service.add_comment(db_session, "hello", "missing", "alice")
    assert exc_info.value.resource == "article"


# ---------------------------------------------------------------------------
# delete_comment
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_own_comment(db_session: AsyncSession, make_user):
    await make_user("alice")
    slug = await _create_article(db_session, "alice")
    comment = await comment_service.add_comment(db_session, "bye", slug, "alice")

    await comment_service.delete_comment(db_session, comment["id"], "alice")
    assert await comment_service.get_comments(db_session, slug, "alice") == []


@pytest.mark.asyncio
async def test_delete_missing_comment(db_session: AsyncSession, make_user):
    await make_user("alice")
    with pytest.raises(NotFound):
        await comment_service.delete_comment(db_session, 99999, "alice")


@pytest.mark.asyncio
async def test_non_owner_delete_is_not_found_never_forbidden(db_session: AsyncSession, make_user):
    """The owner-scoped lookup means the Forbidden branch is unreachable."""
    await make_user("alice")
    await make_user("bob")
    slug = await _create_article(db_session, "alice")
    comment = await comment_service.add_comment(db_session, "mine", slug, "alice")

    with pytest.raises(NotFound) as exc_info:
        await comment_service.delete_comment(db_session, comment["id"], "bob")
    assert not isinstance(exc_info.value, Forbidden)

    # still there for its author
    remaining = await comment_service.get_comments(db_session, slug, "alice")
    assert [c["id"] for c in remaining] == [comment["id"]]
