"""
Comment service: comments on the Article aggregate.

Comments are create/delete only.  Listing is deliberately narrow: a
viewer sees comments written by demo accounts plus their own, never other
users' comments.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from conduit.exceptions import Forbidden, NotFound, ValidationError
from conduit.mappers import comment_to_dict
from conduit.models import Article, Comment, User
from conduit.predicates import compile_predicate, visible_to
from conduit.services.user_service import find_user_id_by_username

logger = logging.getLogger(__name__)


def _comment_load_options():
    return (selectinload(Comment.author).selectinload(User.followers),)


async def get_comments(
    db: AsyncSession, slug: str, viewer: str | None = None
) -> list[dict]:
    """
    Return the comments on *slug* that *viewer* may see, newest first.

    An unknown slug yields an empty list.
    """
    q = (
        select(Comment)
        .join(Comment.article)
        .where(Article.slug == slug, compile_predicate(visible_to(viewer), Comment))
        .options(*_comment_load_options())
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    return [comment_to_dict(c, viewer) for c in result.scalars().all()]


async def add_comment(db: AsyncSession, body: str | None, slug: str, viewer: str) -> dict:
    """
    Create a comment by *viewer* on the article at *slug*.

    Raises ``ValidationError`` for a blank body and ``NotFound`` when the
    article does not exist.
    """
    if not body:
        raise ValidationError("body")

    author_id = await find_user_id_by_username(db, viewer)

    result = await db.execute(select(Article.id).where(Article.slug == slug))
    article_id = result.scalar_one_or_none()
    if article_id is None:
        raise NotFound("article")

    comment = Comment(body=body, article_id=article_id, author_id=author_id)
    db.add(comment)
    await db.flush()

    result = await db.execute(
        select(Comment)
        .where(Comment.id == comment.id)
        .options(*_comment_load_options())
        .execution_options(populate_existing=True)
    )
    return comment_to_dict(result.scalar_one(), viewer)


async def delete_comment(db: AsyncSession, comment_id: int, viewer: str) -> None:
    """
    Delete comment *comment_id* if it was written by *viewer*.

    The lookup is scoped to the viewer's own comments, so someone else's
    comment is reported as NotFound.  The ownership check below it can
    therefore never fire; it stays as an invariant guard.
    """
    result = await db.execute(
        select(Comment)
        .where(Comment.id == comment_id, Comment.author.has(User.username == viewer))
        .options(selectinload(Comment.author))
    )
    comment = result.scalar_one_or_none()
    if comment is None:
        raise NotFound("comment")

    if comment.author.username != viewer:
        raise Forbidden("You are not authorized to delete this comment")

    await db.delete(comment)
    await db.flush()
    logger.info("Comment %d deleted by %s", comment_id, viewer)
