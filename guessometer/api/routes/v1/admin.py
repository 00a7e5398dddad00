"""
Admin endpoints. Every route requires an API key whose user email is in
``Settings.admin_emails``.

Endpoints:
    GET    /admin/check                       -- 200 if caller is admin
    GET    /admin/users                       -- All users, newest first
    PUT    /admin/users                       -- Provision or refresh a user
    PATCH  /admin/users/{id}/display-name     -- Rename any user
    PATCH  /admin/predictions/{id}            -- Update any prediction
    DELETE /admin/predictions/{id}            -- Delete any prediction
    DELETE /admin/comments/{id}               -- Delete any comment
    POST   /admin/sync/pull                   -- Import Airtable records
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from guessometer.api.deps import get_current_settings, get_db, get_prediction_service
from guessometer.api.middleware.auth import require_admin
from guessometer.api.schemas.prediction import PredictionResponse, PredictionUpdate
from guessometer.api.schemas.user import DisplayNameUpdate, UserResponse, UserUpsert
from guessometer.api.services.prediction_service import PredictionService
from guessometer.settings import Settings
from guessometer.sync.airtable import AirtableClient, pull_predictions

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/check")
async def admin_check() -> dict[str, bool]:
    return {"is_admin": True}


@router.get("/users", response_model=list[UserResponse])
async def list_users(
    service: PredictionService = Depends(get_prediction_service),
) -> list[UserResponse]:
    return [UserResponse.model_validate(u) for u in await service.list_users()]


@router.put("/users", response_model=UserResponse)
async def provision_user(
    body: UserUpsert,
    service: PredictionService = Depends(get_prediction_service),
) -> UserResponse:
    user = await service.upsert_user(
        body.id,
        email=body.email,
        display_name=body.display_name,
        first_name=body.first_name,
        last_name=body.last_name,
        profile_image_url=body.profile_image_url,
    )
    logger.info("Provisioned user %s", user.id)
    return UserResponse.model_validate(user)


@router.patch("/users/{user_id}/display-name", response_model=UserResponse)
async def rename_user(
    user_id: str,
    body: DisplayNameUpdate,
    service: PredictionService = Depends(get_prediction_service),
) -> UserResponse:
    try:
        user = await service.update_display_name(user_id, body.display_name)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return UserResponse.model_validate(user)


@router.patch("/predictions/{prediction_id}", response_model=PredictionResponse)
async def update_any_prediction(
    prediction_id: str,
    body: PredictionUpdate,
    service: PredictionService = Depends(get_prediction_service),
) -> PredictionResponse:
    prediction = await service.update_prediction(prediction_id, body.model_dump(exclude_unset=True))
    return PredictionResponse.model_validate(prediction)


@router.delete("/predictions/{prediction_id}", status_code=204)
async def delete_any_prediction(
    prediction_id: str,
    service: PredictionService = Depends(get_prediction_service),
) -> None:
    if not await service.delete_prediction(prediction_id):
        raise HTTPException(status_code=404, detail="Prediction not found")


@router.delete("/comments/{comment_id}", status_code=204)
async def delete_any_comment(
    comment_id: str,
    service: PredictionService = Depends(get_prediction_service),
) -> None:
    if not await service.delete_comment(comment_id):
        raise HTTPException(status_code=404, detail="Comment not found")


@router.post("/sync/pull")
async def pull_from_airtable(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_current_settings),
) -> dict[str, Any]:
    """Import every Airtable record into the local store."""
    if not settings.airtable_enabled:
        raise HTTPException(status_code=503, detail="Airtable sync is not configured")

    client = AirtableClient.from_settings(settings)
    try:
        summary = await pull_predictions(client, db)
    finally:
        await client.close()

    result = asdict(summary)
    result["users_touched"] = sorted(summary.users_touched)
    return result
