"""
Problem Details (RFC 9457) error responses.

Every error leaving the API is ``application/problem+json``. Domain
exceptions raised by the service layer are translated here, so routes
only catch what they need to reword.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import NamedTuple

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from guessometer.api.schemas.common import ProblemDetail
from guessometer.api.services.prediction_service import (
    PredictionNotFoundError,
    UserNotFoundError,
)
from guessometer.api.services.stats_service import StatsUnavailableError
from guessometer.sync.airtable import AirtableError

logger = logging.getLogger(__name__)

PROBLEM_CONTENT_TYPE = "application/problem+json"

Handler = Callable[[Request, Exception], Awaitable[JSONResponse]]


class _Mapping(NamedTuple):
    status: int
    title: str
    detail: str | None
    log_level: int


DOMAIN_ERRORS: dict[type[Exception], _Mapping] = {
    PredictionNotFoundError: _Mapping(404, "Prediction not found", None, logging.DEBUG),
    UserNotFoundError: _Mapping(404, "User not found", None, logging.DEBUG),
    StatsUnavailableError: _Mapping(
        503,
        "Stats unavailable",
        "Statistics could not be computed right now. Try again later.",
        logging.ERROR,
    ),
    AirtableError: _Mapping(502, "Airtable request failed", None, logging.ERROR),
}


def problem(request: Request, problem_detail: ProblemDetail) -> JSONResponse:
    if problem_detail.instance is None:
        problem_detail.instance = request.url.path
    return JSONResponse(
        status_code=problem_detail.status,
        content=jsonable_encoder(problem_detail.model_dump(exclude_none=True)),
        media_type=PROBLEM_CONTENT_TYPE,
    )


def _domain_handler(mapping: _Mapping) -> Handler:
    async def handle(request: Request, exc: Exception) -> JSONResponse:
        logger.log(
            mapping.log_level,
            "%s on %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc,
        )
        return problem(
            request,
            ProblemDetail(title=mapping.title, status=mapping.status, detail=mapping.detail),
        )

    return handle


async def _on_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    summary = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
        for err in errors
    )
    return problem(
        request,
        ProblemDetail(title="Validation Error", status=422, detail=summary, errors=list(errors)),
    )


async def _on_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return problem(request, ProblemDetail(title=str(exc.detail), status=exc.status_code))


async def _on_unhandled(request: Request, exc: Exception) -> JSONResponse:
    # Full traceback stays in the logs; the client gets a generic body.
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return problem(
        request,
        ProblemDetail(
            title="Internal Server Error",
            status=500,
            detail="An unexpected error occurred.",
        ),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach problem+json handlers for framework and domain exceptions."""
    app.add_exception_handler(RequestValidationError, _on_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _on_http_exception)  # type: ignore[arg-type]
    for exc_type, mapping in DOMAIN_ERRORS.items():
        app.add_exception_handler(exc_type, _domain_handler(mapping))
    app.add_exception_handler(Exception, _on_unhandled)
