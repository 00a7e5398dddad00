"""
Stats, accuracy trend and leaderboard DTOs.

``accuracy`` is a percentage with two decimals, ``brier_score`` a mean
squared error in [0, 1] with four decimals (lower is better).
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    total_predictions: int
    correct_predictions: int
    incorrect_predictions: int
    pending_predictions: int
    accuracy: float = Field(..., ge=0.0, le=100.0)
    brier_score: float = Field(..., ge=0.0, le=1.0)
    last_calculated: Optional[datetime] = None


class TrendPointResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: str = Field(..., description="Calendar date, YYYY-MM-DD")
    accuracy: float
    confidence: float
    brier_score: Optional[float] = None


class LeaderboardEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rank: int = Field(..., ge=1)
    user_id: str
    display_name: Optional[str] = None
    total_predictions: int
    correct_predictions: int
    incorrect_predictions: int
    pending_predictions: int
    accuracy: float
    brier_score: float
    last_calculated: Optional[datetime] = None
