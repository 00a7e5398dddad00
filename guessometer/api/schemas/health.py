"""Response body of GET /api/v1/health."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel


class SubsystemStatus(BaseModel):
    name: str
    healthy: bool
    detail: Optional[str] = None
    checked_at: datetime


class HealthResponse(BaseModel):
    """``unhealthy`` when the database is down, ``degraded`` when only
    Airtable sync is unavailable, ``healthy`` otherwise."""

    status: Literal["healthy", "degraded", "unhealthy"]
    subsystems: list[SubsystemStatus]
    timestamp: datetime
    version: str
