"""
Test infrastructure for the Conduit API.

Strategy
--------
- SQLite in-memory via aiosqlite removes the need for a running Postgres
  instance; StaticPool makes every session share the one connection that
  holds the in-memory database.
- Foreign keys are switched on for every connection so ON DELETE CASCADE
  behaves as it does on Postgres (edge rows vanish with their article).
- The app's get_db dependency is overridden so every test-time request
  uses the test session factory rather than the production one.
- All tables are created fresh before each test and dropped after.
- Redis is disabled by setting cache._redis = None; the CacheManager
  treats that as a permanent miss.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from conduit.cache import cache
from conduit.database import Base, get_db, make_engine, make_sessionmaker
from conduit.main import app
from conduit.models import User
from conduit.security import generate_token

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = make_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine_test.sync_engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


async_session_test = make_sessionmaker(engine_test)


async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    cache._redis = None
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """A live AsyncSession for service-level tests and for seeding rows."""
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """An httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession):
    """
    Factory that inserts and commits a user, so rows are visible to the
    sessions the app opens per request.
    """

    async def _make_user(username: str, demo: bool = False, **fields) -> User:
        user = User(
            username=username,
            email=fields.pop("email", f"{username}@example.com"),
            password=fields.pop("password", "secret"),
            demo=demo,
            **fields,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


@pytest.fixture
def auth_header():
    """Build an ``Authorization: Token <jwt>`` header for a username."""

    def _auth_header(username: str) -> dict:
        return {"Authorization": f"Token {generate_token(username, f'{username}@example.com')}"}

    return _auth_header
