"""
GET /health.

Always answers 200. The database check is the only hard dependency; an
unconfigured Airtable sync only degrades the status.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from guessometer.api.deps import get_current_settings, get_db
from guessometer.api.schemas.health import HealthResponse, SubsystemStatus
from guessometer.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter()

API_VERSION = "1.0.0"


async def _check_database(db: AsyncSession) -> tuple[bool, str]:
    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Database check failed: %s", exc)
        return False, str(exc)[:200]
    return True, "OK"


def _check_airtable(settings: Settings) -> tuple[bool, str]:
    if not settings.airtable_enabled:
        return False, "Airtable credentials not configured"
    return True, f"Syncing to table {settings.airtable_table_name}"


@router.get("/health", response_model=HealthResponse, summary="Subsystem health")
async def health_check(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_current_settings),
) -> HealthResponse:
    checked_at = datetime.now(timezone.utc)
    checks = {
        "database": await _check_database(db),
        "airtable_sync": _check_airtable(settings),
    }
    subsystems = [
        SubsystemStatus(name=name, healthy=ok, detail=detail, checked_at=checked_at)
        for name, (ok, detail) in checks.items()
    ]

    if not checks["database"][0]:
        status = "unhealthy"
    elif all(s.healthy for s in subsystems):
        status = "healthy"
    else:
        status = "degraded"

    return HealthResponse(
        status=status,
        subsystems=subsystems,
        timestamp=checked_at,
        version=API_VERSION,
    )
