"""
Endpoints for the authenticated user: profile, stats, trend, own predictions.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from guessometer.api.deps import get_prediction_service, get_stats_service
from guessometer.api.middleware.auth import get_current_user
from guessometer.api.schemas.prediction import PredictionResponse
from guessometer.api.schemas.stats import TrendPointResponse, UserStatsResponse
from guessometer.api.schemas.user import DisplayNameUpdate, UserResponse
from guessometer.api.services.prediction_service import PredictionService
from guessometer.api.services.stats_service import StatsService
from guessometer.db.models import User
from guessometer.stats.types import TrendPeriod

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=UserResponse, summary="Current user")
async def current_user(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)


@router.get("/stats", response_model=UserStatsResponse)
async def user_stats(
    user: User = Depends(get_current_user),
    stats: StatsService = Depends(get_stats_service),
) -> UserStatsResponse:
    """Persisted stats, computed on first access."""
    return UserStatsResponse.model_validate(await stats.get_user_stats(user.id))


@router.post("/stats/recalculate", response_model=UserStatsResponse)
async def recalculate_stats(
    user: User = Depends(get_current_user),
    stats: StatsService = Depends(get_stats_service),
) -> UserStatsResponse:
    return UserStatsResponse.model_validate(await stats.calculate_user_stats(user.id))


@router.get(
    "/accuracy-trend",
    response_model=list[TrendPointResponse],
    response_model_exclude_none=True,
)
async def accuracy_trend(
    period: TrendPeriod = Query("all"),
    include_brier: bool = Query(False, alias="includeBrierScore"),
    user: User = Depends(get_current_user),
    stats: StatsService = Depends(get_stats_service),
) -> list[TrendPointResponse]:
    points = await stats.get_accuracy_trend(user.id, period=period, include_brier=include_brier)
    return [TrendPointResponse(**p.to_dict()) for p in points]


@router.put("/display-name", response_model=UserResponse)
async def update_display_name(
    body: DisplayNameUpdate,
    user: User = Depends(get_current_user),
    service: PredictionService = Depends(get_prediction_service),
) -> UserResponse:
    try:
        updated = await service.update_display_name(user.id, body.display_name)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return UserResponse.model_validate(updated)


@router.get("/predictions", response_model=list[PredictionResponse])
async def own_predictions(
    user: User = Depends(get_current_user),
    service: PredictionService = Depends(get_prediction_service),
) -> list[PredictionResponse]:
    """Caller's predictions, private ones included."""
    rows = await service.list_user_predictions(user.id)
    return [PredictionResponse.model_validate(p) for p in rows]
