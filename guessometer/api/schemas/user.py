"""
User DTOs.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    created_at: Optional[datetime] = None


class DisplayNameUpdate(BaseModel):
    # Length is checked again after stripping by the service.
    display_name: str = Field(..., min_length=1, max_length=100)


class UserUpsert(BaseModel):
    """Identity fields as delivered by the sign-in provider."""

    id: str = Field(..., min_length=1, max_length=64)
    email: Optional[str] = None
    display_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
