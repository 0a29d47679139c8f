"""
Test infrastructure for the News API.

Strategy
--------
- SQLite in-memory via aiosqlite keeps the suite self-contained; no
  Postgres instance is needed.
- StaticPool makes every session share the one in-memory connection,
  otherwise each new connection would see an empty database.
- The app's get_db dependency is overridden so every request uses the
  test session factory.
- Tables are created before each test and dropped after.
- Users are inserted directly (this API has no sign-up route) and bearer
  tokens are minted with the application's own TokenCodec.
"""
import itertools

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.middleware import install_query_counter
from app.models import User

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Dependency override: replace production get_db with the test session factory
# ---------------------------------------------------------------------------

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
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """A live AsyncSession for seeding data and calling services directly."""
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession):
    """
    Factory that inserts and commits a user.

    Committing makes the row visible to the request sessions the API
    opens on the shared connection.
    """
    counter = itertools.count(1)

    async def _make(username: str | None = None, avatar: str | None = None) -> User:
        username = username or f"user{next(counter)}"
        user = User(
            username=username,
            email=f"{username}@example.com",
            avatar=avatar,
            password_hash="$2b$12$notarealhashnotarealhashnotarealhashnotarealha",
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def auth_headers():
    """Return a function mapping a user (or user id) to bearer auth headers."""

    def _headers(user) -> dict:
        user_id = user if isinstance(user, int) else user.id
        token = app.state.token_codec.encode(user_id)
        return {"Authorization": f"Bearer {token}"}

    return _headers
