"""
Engine and per-request sessions for the users and collections store.

SQLite (aiosqlite) by default; PostgreSQL via asyncpg when DATABASE_URL
points there. Ledger and pack-opening code re-read rows explicitly, so
sessions keep loaded objects usable after commit.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pokepacks.config import settings
from pokepacks.models.db import Base

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding one session per request.

    Routes that move coins commit their own transaction; anything still
    pending when the route returns is committed here, and an exception
    rolls the whole request back.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create the users and user_collections tables if missing. Run at startup."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
