from __future__ import annotations

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from breeqa.core.config import settings
from breeqa.db.base import Base

# -----------------------------
# Async engine (FastAPI)
# -----------------------------
# Use CLEAN URL to avoid asyncpg errors with sslmode/channel_binding query params.
DATABASE_URL_ASYNC = settings.DATABASE_URL_ASYNC_CLEAN

if settings.is_sqlite:
    # SQLite (local dev / tests): no pooling, one file handle per session
    engine: AsyncEngine = create_async_engine(
        DATABASE_URL_ASYNC,
        echo=False,
        future=True,
        poolclass=NullPool,
    )
else:
    engine = create_async_engine(
        DATABASE_URL_ASYNC,
        echo=False,
        future=True,
        pool_pre_ping=True,  # detects dead connections before using them
        pool_recycle=300,    # recycle connections periodically (seconds)
    )

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides one AsyncSession per request.
    Services commit explicitly; anything left uncommitted is rolled back on close.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(bind: AsyncEngine | None = None) -> None:
    """
    Create every table straight from the models on a throwaway database (tests,
    local SQLite). Real databases are migrated with `alembic upgrade head`.
    """
    import breeqa.models  # noqa: F401  # force model registration

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
