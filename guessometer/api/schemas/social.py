"""
Likes, comments and community content DTOs.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class LikeStatus(BaseModel):
    liked: bool
    count: int = Field(..., ge=0)


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    prediction_id: str
    content: str
    created_at: Optional[datetime] = None
    display_name: Optional[str] = None


class CommunityContentBody(BaseModel):
    """Free-form JSON document rendered on the community page."""

    content: dict[str, Any]
