from collections.abc import AsyncGenerator
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

from slotplanner.core.config import settings


def _async_database_url(url: str) -> str:
    """Map a sync database URL onto its async driver.

    asyncpg does not accept psycopg params like sslmode/channel_binding, so those
    are stripped; SSL is enabled via connect_args instead.
    """
    parsed = urlparse(url)
    if parsed.scheme == "postgresql":
        query = parse_qs(parsed.query, keep_blank_values=True)
        query.pop("sslmode", None)
        query.pop("channel_binding", None)
        new_query = urlencode(query, doseq=True)
        return urlunparse(("postgresql+asyncpg", parsed.netloc, parsed.path, parsed.params, new_query, parsed.fragment))
    if parsed.scheme == "sqlite":
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


async_database_url = _async_database_url(settings.database_url)

if async_database_url.startswith("sqlite"):
    # Local dev / tests: one connection per checkout so sessions never share an event loop
    engine = create_async_engine(
        async_database_url,
        echo=False,
        poolclass=NullPool,
    )
else:
    engine = create_async_engine(
        async_database_url,
        echo=settings.env == "development",
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        connect_args={"ssl": True} if "+asyncpg" in async_database_url else {},
    )

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create tables if using create_all; prefer Alembic in production."""
    # Table models must be registered on the metadata before create_all
    import slotplanner.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def drop_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
