"""
Value types shared by the statistics engine.

All types here are plain dataclasses / enums with no ORM dependency, so the
engine can score ORM rows, imported records, or test doubles alike.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Literal, Optional, Protocol


class Outcome(str, Enum):
    PENDING = "pending"
    CORRECT = "correct"
    INCORRECT = "incorrect"


RESOLVED_OUTCOMES: frozenset[str] = frozenset({Outcome.CORRECT.value, Outcome.INCORRECT.value})

TrendPeriod = Literal["1m", "6m", "12m", "all"]

# Rolling window length in calendar months; "all" has no window.
PERIOD_MONTHS: dict[str, Optional[int]] = {"1m": 1, "6m": 6, "12m": 12, "all": None}


class ScorablePrediction(Protocol):
    """Minimal attribute surface the engine reads from a prediction."""

    outcome: Optional[str]
    confidence_level: int
    is_public: Optional[bool]
    created_at: Optional[datetime]


@dataclass
class StatsSnapshot:
    """Aggregate accuracy / calibration for one user, rounded for persistence."""

    user_id: str
    total_predictions: int
    correct_predictions: int
    incorrect_predictions: int
    pending_predictions: int
    accuracy: Decimal
    brier_score: Decimal
    calculated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def resolved_predictions(self) -> int:
        return self.correct_predictions + self.incorrect_predictions

    def to_row(self) -> dict[str, Any]:
        """Column mapping for the ``user_stats`` upsert."""
        return {
            "user_id": self.user_id,
            "total_predictions": self.total_predictions,
            "correct_predictions": self.correct_predictions,
            "incorrect_predictions": self.incorrect_predictions,
            "pending_predictions": self.pending_predictions,
            "accuracy": self.accuracy,
            "brier_score": self.brier_score,
            "last_calculated": self.calculated_at,
        }


@dataclass
class TrendPoint:
    date: str
    accuracy: float
    confidence: float
    brier_score: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "date": self.date,
            "accuracy": self.accuracy,
            "confidence": self.confidence,
        }
        if self.brier_score is not None:
            d["brier_score"] = self.brier_score
        return d


@dataclass
class LeaderboardRow:
    """A user's identity joined with that user's persisted stats."""

    user_id: str
    display_name: Optional[str]
    email: Optional[str]
    total_predictions: int
    correct_predictions: int
    incorrect_predictions: int
    pending_predictions: int
    accuracy: Decimal
    brier_score: Decimal
    last_calculated: Optional[datetime] = None
    user_created_at: Optional[datetime] = None
    rank: int = 0
