"""
Tag service: the most used tags among articles the viewer can see.

Results are cached per viewer; article writes purge every entry via
``cache.invalidate_tags``.
"""
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.cache import cache
from conduit.config import settings
from conduit.models import Article, Tag, article_tags
from conduit.predicates import compile_predicate, visible_to


async def get_tags(db: AsyncSession, viewer: str | None = None) -> list[str]:
    """Return up to ``settings.TAG_LIMIT`` tag names, most used first."""
    cache_key = cache.tags_key(viewer)
    cached = await cache.get(cache_key)
    if cached is not None:
        return cached

    q = (
        select(Tag.name)
        .join(article_tags, article_tags.c.tag_id == Tag.id)
        .join(Article, Article.id == article_tags.c.article_id)
        .where(compile_predicate(visible_to(viewer), Article))
        .group_by(Tag.id, Tag.name)
        .order_by(func.count(article_tags.c.article_id).desc(), Tag.name)
        .limit(settings.TAG_LIMIT)
    )
    result = await db.execute(q)
    names = list(result.scalars().all())

    await cache.set(cache_key, names, ttl=settings.CACHE_TTL_TAGS)
    return names
