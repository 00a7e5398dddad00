"""
Guessometer HTTP API.

Run with::

    uvicorn guessometer.api.app:create_app --factory

In development a ``dev-user`` account with API key
``dev-api-key-guessometer`` is created on startup so the API can be
exercised without an identity provider.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from guessometer.api.deps import close_sync_dispatcher, get_sync_dispatcher
from guessometer.api.errors import register_error_handlers
from guessometer.api.middleware.cors import configure_cors
from guessometer.api.routes.v1.health import API_VERSION
from guessometer.db.models import ApiKey, User
from guessometer.db.postgres import close_db, init_db, session_scope
from guessometer.logging_config import setup_logging
from guessometer.settings import get_settings

logger = logging.getLogger(__name__)

DEV_USER_ID = "dev-user"
DEV_API_KEY = "dev-api-key-guessometer"


async def _ensure_dev_credentials() -> None:
    try:
        async with session_scope() as session:
            if await session.get(User, DEV_USER_ID) is None:
                session.add(User(id=DEV_USER_ID, display_name="Dev User", provider="dev"))
            existing = await session.scalar(select(ApiKey.id).where(ApiKey.key == DEV_API_KEY))
            if existing is None:
                session.add(ApiKey(key=DEV_API_KEY, user_id=DEV_USER_ID))
                logger.info("Created dev API key %s for %s", DEV_API_KEY, DEV_USER_ID)
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Skipping dev credentials, schema not ready (alembic upgrade head?): %s", exc)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    setup_logging(level=settings.log_level, json_format=settings.log_json)
    logger.info("Starting Guessometer API %s (env=%s)", API_VERSION, settings.environment)

    init_db()
    get_sync_dispatcher()
    if settings.environment == "development":
        await _ensure_dev_credentials()

    try:
        yield
    finally:
        logger.info("Stopping Guessometer API")
        # Pending Airtable writes finish before the pool goes away.
        await close_sync_dispatcher()
        await close_db()


def create_app() -> FastAPI:
    from guessometer.api.routes.v1.router import v1_router

    app = FastAPI(
        title="Guessometer API",
        version=API_VERSION,
        summary="Forecast journal with accuracy and Brier-score tracking",
        lifespan=_lifespan,
    )
    configure_cors(app)
    register_error_handlers(app)
    app.include_router(v1_router, prefix="/api/v1")
    return app
