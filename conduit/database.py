from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from conduit.config import settings
from conduit.middleware import install_query_counter


def make_engine(url: str, **kwargs) -> AsyncEngine:
    """Create an async engine whose statements feed the X-Query-Count header."""
    engine = create_async_engine(url, **kwargs)
    install_query_counter(engine)
    return engine


def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Services read attributes after commit; keep them loaded.
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


engine = make_engine(settings.DATABASE_URL, echo=settings.DEBUG, pool_pre_ping=True)
async_session = make_sessionmaker(engine)


class Base(DeclarativeBase):
    pass


async def get_db():
    """Request-scoped session: commit on success, roll back on any error."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
