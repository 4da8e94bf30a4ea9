"""
Profile service: public profiles and follow edges.

``following`` in every returned profile is computed relative to the
viewer passed in.  Follow and unfollow are idempotent: following twice
keeps a single edge and unfollowing a user who is not followed is a no-op.
Following yourself is rejected.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from conduit.exceptions import NotFound, ValidationError
from conduit.mappers import profile_to_dict
from conduit.models import User
from conduit.services.user_service import get_user_by_username

logger = logging.getLogger(__name__)


async def _get_profile_user(db: AsyncSession, username: str) -> User:
    result = await db.execute(
        select(User)
        .where(User.username == username)
        .options(selectinload(User.followers))
        .execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFound("profile")
    return user


async def get_profile(db: AsyncSession, username: str, viewer: str | None = None) -> dict:
    return profile_to_dict(await _get_profile_user(db, username), viewer)


async def follow_user(db: AsyncSession, username: str, viewer: str) -> dict:
    follower = await get_user_by_username(db, viewer)
    target = await _get_profile_user(db, username)
    if target.id == follower.id:
        raise ValidationError("profile", "cannot follow yourself")

    if all(u.id != follower.id for u in target.followers):
        target.followers.append(follower)
        await db.flush()
        logger.info("%s now follows %s", viewer, username)

    return profile_to_dict(await _get_profile_user(db, username), viewer)


async def unfollow_user(db: AsyncSession, username: str, viewer: str) -> dict:
    follower = await get_user_by_username(db, viewer)
    target = await _get_profile_user(db, username)

    if any(u.id == follower.id for u in target.followers):
        target.followers = [u for u in target.followers if u.id != follower.id]
        await db.flush()
        logger.info("%s unfollowed %s", viewer, username)

    return profile_to_dict(await _get_profile_user(db, username), viewer)
