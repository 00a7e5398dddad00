"""
Prediction and category DTOs.

``confidence_level`` is an integer percentage; ``outcome`` is one of
pending / correct / incorrect.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

OutcomeValue = Literal["pending", "correct", "incorrect"]

_NOT_NULLABLE = frozenset(
    {"prediction_text", "category", "confidence_level", "target_date", "is_public"}
)


class PredictionCreate(BaseModel):
    prediction_text: str = Field(..., min_length=1, description="The forecast statement")
    description: Optional[str] = Field(None, description="Longer free-text context")
    category: str = Field("general", min_length=1, max_length=64)
    confidence_level: int = Field(..., ge=0, le=100, description="Confidence in percent")
    target_date: datetime = Field(..., description="When the forecast should be resolvable")
    is_public: bool = Field(True, description="Whether the forecast counts toward stats")


class PredictionUpdate(BaseModel):
    """Partial update; only fields that are set are applied."""

    prediction_text: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    category: Optional[str] = Field(None, min_length=1, max_length=64)
    confidence_level: Optional[int] = Field(None, ge=0, le=100)
    target_date: Optional[datetime] = None
    outcome: Optional[OutcomeValue] = None
    is_public: Optional[bool] = None

    @model_validator(mode="after")
    def _reject_null_required_columns(self) -> "PredictionUpdate":
        # Omitting a field leaves it unchanged; null would blank a NOT NULL column.
        nulled = sorted(
            name
            for name in self.model_fields_set & _NOT_NULLABLE
            if getattr(self, name) is None
        )
        if nulled:
            raise ValueError(f"{', '.join(nulled)} cannot be null")
        return self


class PredictionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: Optional[str]
    prediction_text: str
    description: Optional[str] = None
    category: str
    confidence_level: int
    target_date: datetime
    prediction_date: Optional[datetime] = None
    outcome: Optional[str] = "pending"
    is_public: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    display_name: Optional[str] = Field(None, description="Author's display name")


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    color: Optional[str] = Field(None, max_length=16, description="CSS hex color")


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    color: Optional[str] = None
