"""
Direct service-layer tests for profiles and follow edges.
"""
import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.exceptions import NotFound, ValidationError
from conduit.models import follows
from conduit.services import profile_service


async def _edge_count(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(follows))).scalar_one()


@pytest.mark.asyncio
async def test_get_profile(db_session: AsyncSession, make_user):
    await make_user("bob", bio="writer", image="https://img/bob.png")
    profile = await profile_service.get_profile(db_session, "bob")
    assert profile == {
        "username": "bob",
        "bio": "writer",
        "image": "https://img/bob.png",
        "following": False,
    }


@pytest.mark.asyncio
async def test_get_profile_not_found(db_session: AsyncSession):
    with pytest.raises(NotFound) as exc_info:
        await profile_service.get_profile(db_session, "ghost")
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_follow_twice_keeps_single_edge(db_session: AsyncSession, make_user):
    await make_user("alice")
    await make_user("bob")

    first = await profile_service.follow_user(db_session, "bob", "alice")
    second = await profile_service.follow_user(db_session, "bob", "alice")
    assert first["following"] is True
    assert second["following"] is True
    assert await _edge_count(db_session) == 1


@pytest.mark.asyncio
async def test_following_flag_is_viewer_relative(db_session: AsyncSession, make_user):
    await make_user("alice")
    await make_user("bob")
    await make_user("carol")
    await profile_service.follow_user(db_session, "bob", "alice")

    assert (await profile_service.get_profile(db_session, "bob", "alice"))["following"] is True
    assert (await profile_service.get_profile(db_session, "bob", "carol"))["following"] is False
    assert (await profile_service.get_profile(db_session, "bob"))["following"] is False


@pytest.mark.asyncio
async def test_unfollow(db_session: AsyncSession, make_user):
    await make_user("alice")
    await make_user("bob")
    await profile_service.follow_user(db_session, "bob", "alice")

    profile = await profile_service.unfollow_user(db_session, "bob", "alice")
    assert profile["following"] is False
    assert await _edge_count(db_session) == 0


@pytest.mark.asyncio
async def test_unfollow_without_edge_is_noop(db_session: AsyncSession, make_user):
    await make_user("alice")
    await make_user("bob")
    profile = await profile_service.unfollow_user(db_session, "bob", "alice")
    assert profile["following"] is False


@pytest.mark.asyncio
async def test_follow_direction(db_session: AsyncSession, make_user):
    await make_user("alice")
    await make_user("bob")
    await profile_service.follow_user(db_session, "bob", "alice")
    # bob does not follow alice back
    assert (await profile_service.get_profile(db_session, "alice", "bob"))["following"] is False


@pytest.mark.asyncio
async def test_self_follow_is_rejected(db_session: AsyncSession, make_user):
    await make_user("alice")
    with pytest.raises(ValidationError) as exc_info:
        await profile_service.follow_user(db_session, "alice", "alice")
    assert exc_info.value.body == {"errors": {"profile": ["cannot follow yourself"]}}
    assert await _edge_count(db_session) == 0


@pytest.mark.asyncio
async def test_follow_unknown_target(db_session: AsyncSession, make_user):
    await make_user("alice")
    with pytest.raises(NotFound):
        await profile_service.follow_user(db_session, "ghost", "alice")


@pytest.mark.asyncio
async def test_follow_unknown_viewer(db_session: AsyncSession, make_user):
    await make_user("bob")
    with pytest.raises(NotFound):
        await profile_service.follow_user(db_session, "bob", "ghost")
