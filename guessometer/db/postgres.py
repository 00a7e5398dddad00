"""
Engine and session lifecycle.

PostgreSQL (asyncpg) in deployment, SQLite (aiosqlite) for local runs and
tests. The engine is process-wide: ``init_db()`` at startup,
``close_db()`` at shutdown, and ``session_scope()`` everywhere a unit of
work is needed.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from guessometer.settings import get_settings

logger = logging.getLogger(__name__)

engine: AsyncEngine | None = None
async_session_factory: async_sessionmaker[AsyncSession] | None = None


def _engine_kwargs(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 5, "max_overflow": 10, "pool_pre_ping": True, "pool_recycle": 1800}


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:
    # SQLite ignores REFERENCES clauses unless asked per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def init_db(url: str | None = None) -> AsyncEngine:
    """Build the engine and session factory (idempotent per URL).

    Args:
        url: Database URL; defaults to ``Settings.database_url``.
    """
    global engine, async_session_factory  # noqa: PLW0603

    database_url = url or get_settings().database_url
    engine = create_async_engine(database_url, **_engine_kwargs(database_url))
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    async_session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    logger.info("Database engine ready: %s", engine.url.render_as_string(hide_password=True))
    return engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if async_session_factory is None:
        init_db()
    assert async_session_factory is not None
    return async_session_factory


async def close_db() -> None:
    global engine, async_session_factory  # noqa: PLW0603
    if engine is not None:
        await engine.dispose()
        logger.info("Database engine disposed")
    engine = None
    async_session_factory = None


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """One unit of work: commit when the block exits cleanly, else roll back."""
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Generator form of ``session_scope`` for FastAPI ``Depends``."""
    async with session_scope() as session:
        yield session
