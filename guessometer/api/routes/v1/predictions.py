"""
Prediction endpoints, including likes and comments.

Reads of public data need no authentication; every write requires an API
key and is scoped to the caller's own predictions.

Endpoints:
    GET    /predictions                      -- Public feed, newest first
    POST   /predictions                      -- Create (recompute + sync)
    PATCH  /predictions/{id}                 -- Owner update (recompute + sync)
    DELETE /predictions/{id}                 -- Owner delete with likes/comments
    POST   /predictions/{id}/like            -- Toggle caller's like
    GET    /predictions/{id}/likes           -- Like count
    GET    /predictions/{id}/user-liked      -- Whether caller liked it
    POST   /predictions/{id}/comments        -- Add comment
    GET    /predictions/{id}/comments        -- Comments, newest first
    GET    /predictions/{id}/comments/count  -- Comment count
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from guessometer.api.deps import get_prediction_service
from guessometer.api.middleware.auth import get_current_user
from guessometer.api.schemas.prediction import (
    PredictionCreate,
    PredictionResponse,
    PredictionUpdate,
)
from guessometer.api.schemas.social import CommentCreate, CommentResponse, LikeStatus
from guessometer.api.services.prediction_service import PredictionService
from guessometer.db.models import User

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[PredictionResponse], summary="Public predictions")
async def list_predictions(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    service: PredictionService = Depends(get_prediction_service),
) -> list[PredictionResponse]:
    rows = await service.list_public_predictions(limit=limit, offset=offset)
    return [
        PredictionResponse.model_validate(prediction).model_copy(update={"display_name": name})
        for prediction, name in rows
    ]


@router.post("", response_model=PredictionResponse, status_code=201)
async def create_prediction(
    body: PredictionCreate,
    user: User = Depends(get_current_user),
    service: PredictionService = Depends(get_prediction_service),
) -> PredictionResponse:
    prediction = await service.create_prediction(user.id, body.model_dump())
    return PredictionResponse.model_validate(prediction)


@router.patch("/{prediction_id}", response_model=PredictionResponse)
async def update_prediction(
    prediction_id: str,
    body: PredictionUpdate,
    user: User = Depends(get_current_user),
    service: PredictionService = Depends(get_prediction_service),
) -> PredictionResponse:
    prediction = await service.update_prediction(
        prediction_id, body.model_dump(exclude_unset=True), owner_id=user.id
    )
    return PredictionResponse.model_validate(prediction)


@router.delete("/{prediction_id}", status_code=204)
async def delete_prediction(
    prediction_id: str,
    user: User = Depends(get_current_user),
    service: PredictionService = Depends(get_prediction_service),
) -> None:
    if not await service.delete_prediction(prediction_id, owner_id=user.id):
        raise HTTPException(status_code=404, detail="Prediction not found")


# -----------------------------------------------------------------------
# Likes
# -----------------------------------------------------------------------


@router.post("/{prediction_id}/like", response_model=LikeStatus)
async def toggle_like(
    prediction_id: str,
    user: User = Depends(get_current_user),
    service: PredictionService = Depends(get_prediction_service),
) -> LikeStatus:
    liked, count = await service.toggle_like(user.id, prediction_id)
    return LikeStatus(liked=liked, count=count)


@router.get("/{prediction_id}/likes")
async def like_count(
    prediction_id: str,
    service: PredictionService = Depends(get_prediction_service),
) -> dict[str, int]:
    return {"count": await service.like_count(prediction_id)}


@router.get("/{prediction_id}/user-liked")
async def user_liked(
    prediction_id: str,
    user: User = Depends(get_current_user),
    service: PredictionService = Depends(get_prediction_service),
) -> dict[str, bool]:
    return {"liked": await service.has_user_liked(user.id, prediction_id)}


# -----------------------------------------------------------------------
# Comments
# -----------------------------------------------------------------------


@router.post("/{prediction_id}/comments", response_model=CommentResponse, status_code=201)
async def add_comment(
    prediction_id: str,
    body: CommentCreate,
    user: User = Depends(get_current_user),
    service: PredictionService = Depends(get_prediction_service),
) -> CommentResponse:
    try:
        comment = await service.add_comment(user.id, prediction_id, body.content)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return CommentResponse.model_validate(comment).model_copy(
        update={"display_name": user.display_name}
    )


@router.get("/{prediction_id}/comments", response_model=list[CommentResponse])
async def list_comments(
    prediction_id: str,
    service: PredictionService = Depends(get_prediction_service),
) -> list[CommentResponse]:
    rows = await service.list_comments(prediction_id)
    return [
        CommentResponse.model_validate(comment).model_copy(update={"display_name": name})
        for comment, name in rows
    ]


@router.get("/{prediction_id}/comments/count")
async def comment_count(
    prediction_id: str,
    service: PredictionService = Depends(get_prediction_service),
) -> dict[str, int]:
    return {"count": await service.comment_count(prediction_id)}
