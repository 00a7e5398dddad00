"""
API key authentication dependencies.

Resolves the API key header to a ``User`` through the ``api_keys`` table.
Keys that are revoked or don't exist result in a 401. Admin rights come
from ``Settings.admin_emails``; a non-admin hitting an admin route gets 403.

These are FastAPI ``Depends()`` callables, NOT ASGI middleware -- they only
run on routes that explicitly declare them.
"""

from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Security
from fastapi.security import APIKeyHeader
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from guessometer.api.deps import get_current_settings, get_db
from guessometer.db.models import ApiKey, User
from guessometer.settings import Settings, get_settings

logger = logging.getLogger(__name__)

_api_key_header = APIKeyHeader(name=get_settings().api_key_header, auto_error=False)


async def get_current_user(
    api_key: str | None = Security(_api_key_header),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Validate the API key and return its owner.

    Raises:
        HTTPException: 401 if the key is missing, invalid, or revoked.
    """
    if api_key is None:
        raise HTTPException(
            status_code=401,
            detail="Missing API key. Provide X-API-Key header.",
        )

    result = await db.execute(
        select(User)
        .join(ApiKey, ApiKey.user_id == User.id)
        .where(ApiKey.key == api_key, ApiKey.revoked.is_(False))
    )
    user = result.scalar_one_or_none()

    if user is None:
        logger.warning("Rejected API key: %s...", api_key[:8] if len(api_key) >= 8 else api_key)
        raise HTTPException(
            status_code=401,
            detail="Invalid or revoked API key.",
        )

    logger.debug("Authenticated user: %s", user.id)
    return user


async def require_admin(
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_current_settings),
) -> User:
    """Like ``get_current_user`` but additionally requires an admin email.

    Raises:
        HTTPException: 403 if the user is not an admin.
    """
    if not settings.is_admin_email(user.email):
        logger.warning("Admin access denied for user %s", user.id)
        raise HTTPException(status_code=403, detail="Admin access required.")
    return user
