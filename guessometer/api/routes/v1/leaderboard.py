"""
Public leaderboard: users ranked by accuracy, then prediction volume.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from guessometer.api.deps import get_stats_service
from guessometer.api.schemas.stats import LeaderboardEntry
from guessometer.api.services.stats_service import StatsService

router = APIRouter()


@router.get("", response_model=list[LeaderboardEntry])
async def leaderboard(
    limit: Optional[int] = Query(None, ge=1, le=500),
    stats: StatsService = Depends(get_stats_service),
) -> list[LeaderboardEntry]:
    rows = await stats.get_leaderboard(limit=limit)
    return [LeaderboardEntry.model_validate(r) for r in rows]
