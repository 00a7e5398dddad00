"""
FastAPI dependency injection providers.

Thin wrappers that adapt internal infrastructure (database sessions,
settings, the Airtable sync dispatcher) into FastAPI-compatible
``Depends()`` callables. Keep this module free of business logic -- it's
pure plumbing.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from guessometer.api.services.prediction_service import PredictionService
from guessometer.api.services.stats_service import StatsService
from guessometer.db.postgres import get_async_session, get_session_factory
from guessometer.settings import Settings, get_settings
from guessometer.sync.airtable import AirtableClient, SyncDispatcher

logger = logging.getLogger(__name__)

# Module-level singleton -- lazy-initialized on first access.
_sync_dispatcher: SyncDispatcher | None = None


def get_sync_dispatcher() -> SyncDispatcher:
    """Return the process-wide ``SyncDispatcher`` singleton.

    When Airtable credentials are not configured the dispatcher has no
    client and every dispatch is a no-op.
    """
    global _sync_dispatcher  # noqa: PLW0603
    if _sync_dispatcher is not None:
        return _sync_dispatcher

    settings = get_settings()
    if settings.airtable_enabled:
        client = AirtableClient.from_settings(settings)
        logger.info("Airtable sync enabled (table=%s)", client.table)
    else:
        client = None
        logger.info("Airtable sync disabled: credentials not configured")
    _sync_dispatcher = SyncDispatcher(client, get_session_factory())
    return _sync_dispatcher


async def close_sync_dispatcher() -> None:
    """Drain in-flight sync tasks and close the HTTP session (app shutdown)."""
    global _sync_dispatcher  # noqa: PLW0603
    if _sync_dispatcher is not None:
        await _sync_dispatcher.close()
        _sync_dispatcher = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session with automatic commit/rollback.

    Wraps ``guessometer.db.postgres.get_async_session`` for use as a FastAPI
    dependency. The session commits on success, rolls back on exception,
    and closes on exit.
    """
    async for session in get_async_session():
        yield session


def get_current_settings() -> Settings:
    """Return the cached settings singleton."""
    return get_settings()


def get_prediction_service(
    db: AsyncSession = Depends(get_db),
    dispatcher: SyncDispatcher = Depends(get_sync_dispatcher),
) -> PredictionService:
    return PredictionService(db, dispatcher)


def get_stats_service(db: AsyncSession = Depends(get_db)) -> StatsService:
    return StatsService(db)
