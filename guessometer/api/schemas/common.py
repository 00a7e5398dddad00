"""Error body shared by every endpoint."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ProblemDetail(BaseModel):
    """RFC 9457 problem document, served as ``application/problem+json``."""

    type: str = "about:blank"
    title: str
    status: int
    detail: Optional[str] = None
    instance: Optional[str] = Field(None, description="Request path that failed")
    errors: Optional[list[dict[str, Any]]] = Field(
        None, description="Per-field validation failures (422 only)"
    )
