"""
Prediction category catalogue.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from guessometer.api.deps import get_prediction_service
from guessometer.api.middleware.auth import get_current_user
from guessometer.api.schemas.prediction import CategoryCreate, CategoryResponse
from guessometer.api.services.prediction_service import PredictionService
from guessometer.db.models import User

router = APIRouter()


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    service: PredictionService = Depends(get_prediction_service),
) -> list[CategoryResponse]:
    return [CategoryResponse.model_validate(c) for c in await service.list_categories()]


@router.post("", response_model=CategoryResponse, status_code=201)
async def create_category(
    body: CategoryCreate,
    _user: User = Depends(get_current_user),
    service: PredictionService = Depends(get_prediction_service),
) -> CategoryResponse:
    category = await service.create_category(body.name, body.color)
    return CategoryResponse.model_validate(category)
