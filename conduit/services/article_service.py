"""
Article service: business rules for the Article aggregate.

Design notes
------------
- Listing filters are assembled as a predicate tree
  (``conduit.predicates.build_article_predicate``) and compiled to SQL in
  one place, so the always-on visibility rule stays separate from the
  optional author / tag / favorited filters.
- Every read eager-loads exactly what ``article_to_dict`` needs (author
  and the author's followers, tags, favoriting users) with
  ``selectinload``; relationships are ``noload`` by default.
  ``populate_existing`` is set on those reads so a row already present in
  the session identity map is refreshed with its current edges.
- Ownership is checked after existence: a missing slug is NotFound even
  for a caller who could never have owned it.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.
"""
import logging
import re

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from conduit.cache import cache
from conduit.config import settings
from conduit.exceptions import Conflict, Forbidden, NotFound, ValidationError
from conduit.mappers import article_to_dict
from conduit.models import Article, Tag, User, utcnow
from conduit.predicates import AuthorFollowedBy, Predicate, build_article_predicate, compile_predicate
from conduit.schemas import ArticleCreate, ArticleUpdate
from conduit.services.user_service import find_user_id_by_username, get_user_by_username

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_SLUG_STRIP_RE = re.compile(r"[^\w\s-]")
_SLUG_SPACE_RE = re.compile(r"[\s_]+")
_SLUG_DASH_RE = re.compile(r"-+")

_REQUIRED_FIELDS = ("title", "description", "body")


def slugify(text: str) -> str:
    """Return a URL-safe, lowercase slug derived from *text*."""
    text = _SLUG_STRIP_RE.sub("", text.lower().strip())
    text = _SLUG_SPACE_RE.sub("-", text)
    return _SLUG_DASH_RE.sub("-", text).strip("-")


def article_slug(title: str, author_id: int) -> str:
    return f"{slugify(title)}-{author_id}"


def _non_negative(value, default: int, maximum: int | None = None) -> int:
    if value is None:
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number < 0 or (maximum is not None and number > maximum):
        return default
    return number


def normalize_pagination(offset=None, limit=None) -> tuple[int, int]:
    """
    Return ``(offset, limit)`` with defaults applied.

    Anything that is not a non-negative integer falls back to the default
    instead of raising, as does an offset past ``settings.MAX_OFFSET``.
    A zero limit falls back as well, and the limit is capped at
    ``settings.MAX_LIMIT``.
    """
    offset = _non_negative(offset, settings.DEFAULT_OFFSET, settings.MAX_OFFSET)
    limit = _non_negative(limit, settings.DEFAULT_LIMIT) or settings.DEFAULT_LIMIT
    return offset, min(limit, settings.MAX_LIMIT)


def _article_load_options():
    return (
        selectinload(Article.author).selectinload(User.followers),
        selectinload(Article.tags),
        selectinload(Article.favorited_by),
    )


async def _get_article(db: AsyncSession, slug: str) -> Article | None:
    q = (
        select(Article)
        .where(Article.slug == slug)
        .options(*_article_load_options())
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    return result.scalar_one_or_none()


async def _get_article_or_404(db: AsyncSession, slug: str) -> Article:
    article = await _get_article(db, slug)
    if article is None:
        raise NotFound("article")
    return article


async def _find_articles(
    db: AsyncSession, predicate: Predicate, offset: int, limit: int
) -> list[Article]:
    q = (
        select(Article)
        .where(compile_predicate(predicate, Article))
        .options(*_article_load_options())
        .order_by(Article.created_at.desc(), Article.id.desc())
        .offset(offset)
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    return list(result.scalars().all())


async def _slug_taken(db: AsyncSession, slug: str) -> bool:
    result = await db.execute(select(Article.id).where(Article.slug == slug))
    return result.scalar_one_or_none() is not None


async def _flush_article(db: AsyncSession) -> None:
    """Flush pending article writes, reporting a slug race as Conflict."""
    try:
        await db.flush()
    except IntegrityError as exc:
        logger.warning("Slug uniqueness violated at storage level: %s", exc.orig)
        raise Conflict() from exc


# ---------------------------------------------------------------------------
# Tag resolution helper (used by create / update)
# ---------------------------------------------------------------------------

async def _resolve_tags(db: AsyncSession, tag_names: list[str]) -> list[Tag]:
    """
    Return Tag ORM instances for each distinct name in *tag_names*,
    creating any that do not yet exist.
    """
    tags: list[Tag] = []
    for name in dict.fromkeys(tag_names):
        result = await db.execute(select(Tag).where(Tag.name == name))
        tag = result.scalar_one_or_none()
        if not tag:
            tag = Tag(name=name)
            db.add(tag)
            await db.flush()
        tags.append(tag)
    return tags


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_articles(
    db: AsyncSession,
    viewer: str | None = None,
    *,
    author: str | None = None,
    tag: str | None = None,
    favorited: str | None = None,
    offset=None,
    limit=None,
) -> dict:
    """
    Return one page of articles visible to *viewer*, newest first.

    ``articlesCount`` is the size of the returned page, not the number of
    matching articles.
    """
    offset, limit = normalize_pagination(offset, limit)
    predicate = build_article_predicate(viewer, author=author, tag=tag, favorited=favorited)
    articles = await _find_articles(db, predicate, offset, limit)
    return {
        "articles": [article_to_dict(a, viewer) for a in articles],
        "articlesCount": len(articles),
    }


async def get_feed(db: AsyncSession, viewer: str, offset=None, limit=None) -> dict:
    """
    Return one page of articles written by users *viewer* follows.

    Raises ``NotFound`` when *viewer* does not resolve to a user.
    """
    offset, limit = normalize_pagination(offset, limit)
    user_id = await find_user_id_by_username(db, viewer)
    articles = await _find_articles(db, AuthorFollowedBy(user_id), offset, limit)
    return {
        "articles": [article_to_dict(a, viewer) for a in articles],
        "articlesCount": len(articles),
    }


async def create_article(db: AsyncSession, data: ArticleCreate, viewer: str) -> dict:
    """
    Create an article authored by *viewer* and return its wire dict.

    The slug is ``slugify(title)-<author id>``; an existing slug is
    rejected with ``Conflict`` rather than disambiguated.
    """
    for field in _REQUIRED_FIELDS:
        if not getattr(data, field):
            raise ValidationError(field)

    author_id = await find_user_id_by_username(db, viewer)
    slug = article_slug(data.title, author_id)
    if await _slug_taken(db, slug):
        logger.info("Rejected duplicate article slug %r for %s", slug, viewer)
        raise Conflict()

    article = Article(
        slug=slug,
        title=data.title,
        description=data.description,
        body=data.body,
        author_id=author_id,
    )
    article.tags = await _resolve_tags(db, data.tag_list or [])

    db.add(article)
    await _flush_article(db)
    await cache.invalidate_tags()
    logger.info("Article %r created by %s", slug, viewer)

    return article_to_dict(await _get_article(db, slug), viewer)


async def get_article(db: AsyncSession, slug: str, viewer: str | None = None) -> dict:
    article = await _get_article_or_404(db, slug)
    return article_to_dict(article, viewer)


async def update_article(
    db: AsyncSession, data: ArticleUpdate, slug: str, viewer: str
) -> dict:
    """
    Patch the article at *slug* on behalf of its author.

    Only non-empty fields are applied.  A new title regenerates the slug
    and is rejected if another article already owns it.  A non-empty
    ``tagList`` replaces the whole tag set; an absent or empty one leaves
    the tags untouched.
    """
    article = await _get_article_or_404(db, slug)
    if article.author.username != viewer:
        logger.info("Refused update of %r by %s", slug, viewer)
        raise Forbidden("You are not authorized to update this article")

    new_slug = None
    if data.title:
        new_slug = article_slug(data.title, article.author_id)
        if new_slug != slug and await _slug_taken(db, new_slug):
            raise Conflict()

    if data.title:
        article.title = data.title
    if data.description:
        article.description = data.description
    if data.body:
        article.body = data.body
    if new_slug:
        article.slug = new_slug
    if data.tag_list:
        article.tags = await _resolve_tags(db, data.tag_list)
    article.updated_at = utcnow()

    await _flush_article(db)
    await cache.invalidate_tags()

    return article_to_dict(await _get_article(db, article.slug), viewer)


async def delete_article(db: AsyncSession, slug: str, viewer: str) -> None:
    result = await db.execute(
        select(Article).where(Article.slug == slug).options(selectinload(Article.author))
    )
    article = result.scalar_one_or_none()
    if article is None:
        raise NotFound("article")
    if article.author.username != viewer:
        logger.info("Refused deletion of %r by %s", slug, viewer)
        raise Forbidden("You are not authorized to delete this article")

    await db.delete(article)
    await db.flush()
    await cache.invalidate_tags()
    logger.info("Article %r deleted by %s", slug, viewer)


async def favorite_article(db: AsyncSession, slug: str, viewer: str) -> dict:
    """Add *viewer* to the article's favoriting users (no-op if present)."""
    user = await get_user_by_username(db, viewer)
    article = await _get_article_or_404(db, slug)
    if all(u.id != user.id for u in article.favorited_by):
        article.favorited_by.append(user)
        await db.flush()
    return article_to_dict(await _get_article(db, slug), viewer)


async def unfavorite_article(db: AsyncSession, slug: str, viewer: str) -> dict:
    """Remove *viewer* from the article's favoriting users (no-op if absent)."""
    user = await get_user_by_username(db, viewer)
    article = await _get_article_or_404(db, slug)
    article.favorited_by = [u for u in article.favorited_by if u.id != user.id]
    await db.flush()
    return article_to_dict(await _get_article(db, slug), viewer)
