"""
User service: identity lookup for the User aggregate.

Every mutating operation resolves the requesting viewer's username to an
internal id before touching an edge or an owned row.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.exceptions import NotFound
from conduit.models import User


async def find_user_id_by_username(db: AsyncSession, username: str) -> int:
    """
    Return the id of the user called *username*.

    Raises ``NotFound`` when no such user exists.
    """
    result = await db.execute(select(User.id).where(User.username == username))
    user_id = result.scalar_one_or_none()
    if user_id is None:
        raise NotFound("user")
    return user_id


async def get_user_by_username(db: AsyncSession, username: str) -> User:
    """Like ``find_user_id_by_username`` but returns the ORM instance."""
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFound("user")
    return user
