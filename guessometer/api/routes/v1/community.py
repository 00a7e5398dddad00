"""
Community page content: one JSON document, publicly readable, admin-edited.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends

from guessometer.api.deps import get_prediction_service
from guessometer.api.middleware.auth import require_admin
from guessometer.api.schemas.social import CommunityContentBody
from guessometer.api.services.prediction_service import PredictionService
from guessometer.db.models import User

router = APIRouter()


@router.get("")
async def get_community_content(
    service: PredictionService = Depends(get_prediction_service),
) -> Optional[dict[str, Any]]:
    return await service.get_community_content()


@router.post("", response_model=CommunityContentBody)
async def save_community_content(
    body: CommunityContentBody,
    _admin: User = Depends(require_admin),
    service: PredictionService = Depends(get_prediction_service),
) -> CommunityContentBody:
    row = await service.save_community_content(body.content)
    return CommunityContentBody(content=row.content)
