"""PostgreSQL store with async SQLAlchemy.

One engine per process, opened in the app lifespan (or by a script) and
disposed on shutdown. Repositories borrow sessions through get_session(),
which commits on success and rolls back on any error.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.settings import get_settings

logger = logging.getLogger("uvicorn.error")


class Base(DeclarativeBase):
    """Declarative base for the records schema."""


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


async def init_db() -> None:
    """Open the connection pool sized from settings."""
    global _engine, _session_factory

    settings = get_settings()
    _engine = create_async_engine(
        settings.async_database_url,
        echo=settings.debug,
        connect_args=settings.asyncpg_connect_args,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
    )
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)


async def ping_db() -> str:
    """Round-trip to the server; returns its version string."""
    async with get_session() as session:
        version = (await session.execute(text("SHOW server_version"))).scalar_one()
    logger.info(f"Postgres server version {version}")
    return version


async def close_db() -> None:
    """Dispose the pool; safe to call when it was never opened."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Session unit of work.

    Usage:
        async with get_session() as session:
            rows = (await session.execute(stmt)).scalars().all()
    """
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    async with _session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
