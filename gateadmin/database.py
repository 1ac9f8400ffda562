from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from gateadmin.config import settings
from gateadmin.middleware import install_query_counter

# Module-level engine variable allows tests to override with a test engine.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

# Register the per-request SQL query counter on the production engine.
install_query_counter(engine)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db():
    # Read-only application: the session never commits.
    async with async_session() as session:
        yield session
