"""Cross-origin access for the browser client."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from guessometer.settings import get_settings

_METHODS = ["GET", "POST", "PATCH", "PUT", "DELETE", "OPTIONS"]


def configure_cors(app: FastAPI) -> None:
    """Any origin in development, ``CORS_ORIGINS`` elsewhere.

    Auth travels in the API-key header, never cookies, so credentials
    stay disabled.
    """
    settings = get_settings()
    allowed = ["*"] if settings.environment == "development" else list(settings.cors_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed,
        allow_methods=_METHODS,
        allow_headers=[settings.api_key_header, "Content-Type", "Accept"],
    )
