"""Demo-data seeder: demo accounts whose content every viewer can see."""
import argparse
import asyncio
import logging
import random
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.cache import cache
from conduit.database import async_session
from conduit.models import Article, Comment, Tag, User
from conduit.services.article_service import article_slug

logger = logging.getLogger(__name__)

TAGS = ["python", "fastapi", "postgresql", "redis", "docker", "testing",
        "performance", "security", "devops", "typescript"]

TOPICS = ["async I/O", "query planning", "caching", "schema design",
          "observability", "deployments", "code review", "API design"]


async def _get_or_create_tags(session: AsyncSession, names: list[str]) -> list[Tag]:
    existing = (await session.execute(select(Tag).where(Tag.name.in_(names)))).scalars().all()
    by_name = {tag.name: tag for tag in existing}
    for name in names:
        if name not in by_name:
            by_name[name] = Tag(name=name)
            session.add(by_name[name])
    await session.flush()
    return [by_name[name] for name in names]


async def seed_demo_data(
    session: AsyncSession,
    users: int = 3,
    articles_per_user: int = 2,
    comments_per_article: int = 2,
    rng: random.Random | None = None,
) -> dict:
    """
    Create *users* demo accounts, each with articles, tags and comments.

    Usernames are suffixed with a run marker so repeated runs never clash
    with earlier demo accounts.  Flushes but does not commit; cached tag
    listings are purged so the new tags show up immediately.  Returns the
    number of rows created per kind.
    """
    rng = rng or random.Random()
    marker = uuid.uuid4().hex[:8]
    tags = await _get_or_create_tags(session, TAGS)

    authors = []
    for i in range(users):
        user = User(
            username=f"demo_{marker}_{i}",
            email=f"demo_{marker}_{i}@example.com",
            password="!",  # demo accounts cannot sign in
            bio=f"Demo account {i}. Writes about {rng.choice(TOPICS)}.",
            demo=True,
        )
        session.add(user)
        authors.append(user)
    await session.flush()

    articles = []
    for author in authors:
        for n in range(articles_per_user):
            title = f"Notes on {rng.choice(TOPICS)} #{n}"
            article = Article(
                slug=article_slug(title, author.id),
                title=title,
                description=f"What {author.username} learned about {rng.choice(TOPICS)}.",
                body="Lorem ipsum dolor sit amet. " * 10,
                author_id=author.id,
            )
            article.tags = rng.sample(tags, k=rng.randint(1, 3))
            session.add(article)
            articles.append(article)
    await session.flush()

    comments = 0
    for article in articles:
        for _ in range(comments_per_article):
            session.add(Comment(
                body=f"Thanks for writing this, {rng.choice(TOPICS)} is tricky.",
                article_id=article.id,
                author_id=rng.choice(authors).id,
            ))
            comments += 1
    await session.flush()
    await cache.invalidate_tags()

    counts = {"users": len(authors), "articles": len(articles), "comments": comments}
    logger.info("Seeded demo data: %s", counts)
    return counts


async def seed(small: bool = False) -> None:
    await cache.connect()
    try:
        async with async_session() as session:
            counts = await seed_demo_data(
                session,
                users=3 if small else 20,
                articles_per_user=2 if small else 10,
                comments_per_article=2 if small else 5,
            )
            await session.commit()
    finally:
        await cache.disconnect()
    print(f"Seeding complete: {counts}")


def main():
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser(description="Seed demo accounts and their content")
    parser.add_argument("--small", action="store_true", help="Use a small dataset")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
