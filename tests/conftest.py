"""
Test infrastructure for the admin views.

Strategy
--------
- SQLite in-memory via aiosqlite stands in for the production database so
  the suite needs no running server.
- StaticPool forces every session to share the one in-memory connection;
  a second connection would see an empty database.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the production one.
- The three tables are created fresh before each test and dropped after.
  The application never writes, so tests seed rows through ``db_session``
  and commit them before issuing requests.
"""
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from gateadmin.database import Base, get_db
from gateadmin.main import app
from gateadmin.middleware import install_query_counter

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
        yield session


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
    """Yield a live AsyncSession for seeding rows and calling services directly."""
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def drop_table():
    """Return a coroutine that drops one table, simulating a missing table."""
    async def _drop(model) -> None:
        async with engine_test.begin() as conn:
            await conn.run_sync(model.__table__.drop)

    return _drop
