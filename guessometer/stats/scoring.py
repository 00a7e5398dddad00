"""
Accuracy and Brier score computation over a user's predictions.

The Brier score is the mean squared error between the stated forecast
probability and the binary outcome:
    BS = (1/N) * sum((p_i - o_i)^2)
with p_i = confidence_level / 100 and o_i = 1 for correct, 0 for incorrect.

Lower is better: 0 = perfect, 0.25 = always saying 50%, 1 = maximally wrong.

Only resolved predictions (correct / incorrect) enter accuracy and Brier
math. Pending predictions count toward totals only.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

import numpy as np
from sklearn.metrics import brier_score_loss

from guessometer.stats.resolution import normalize_outcome
from guessometer.stats.types import Outcome, ScorablePrediction, StatsSnapshot

logger = logging.getLogger(__name__)

ACCURACY_QUANTUM = Decimal("0.01")
BRIER_QUANTUM = Decimal("0.0001")


def to_fixed(value: float, quantum: Decimal) -> Decimal:
    """Round half-up to a fixed number of decimal places."""
    return Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP)


def brier_contribution(confidence_level: float, outcome: Outcome) -> float:
    """Squared error for a single resolved prediction (running trend sums)."""
    forecast_probability = confidence_level / 100
    actual = 1.0 if outcome is Outcome.CORRECT else 0.0
    return (forecast_probability - actual) ** 2


def accuracy_percent(correct: int, resolved: int) -> float:
    return correct / resolved * 100 if resolved > 0 else 0.0


def compute_stats(
    user_id: str,
    predictions: Iterable[ScorablePrediction],
    public_only: bool = True,
) -> StatsSnapshot:
    """Compute a user's aggregate stats from their prediction rows.

    Args:
        user_id: Owner of the predictions (copied into the snapshot).
        predictions: The user's predictions, in any order.
        public_only: Ignore private predictions (the persisted stats are
            public-facing, so callers normally leave this on).

    Returns:
        StatsSnapshot with accuracy rounded to 2 places and Brier score
        rounded to 4 places.
    """
    total = pending = 0
    y_true: list[int] = []
    y_prob: list[float] = []

    for prediction in predictions:
        if public_only and not prediction.is_public:
            continue
        total += 1
        outcome = normalize_outcome(prediction.outcome)
        if outcome is Outcome.PENDING:
            pending += 1
            continue
        y_true.append(1 if outcome is Outcome.CORRECT else 0)
        y_prob.append(prediction.confidence_level / 100)

    resolved = len(y_true)
    correct = sum(y_true)
    incorrect = resolved - correct
    accuracy = accuracy_percent(correct, resolved)

    if resolved > 0:
        # Imported rows can carry out-of-range percentages.
        probs = np.clip(np.asarray(y_prob, dtype=float), 0.0, 1.0)
        brier = float(brier_score_loss(np.asarray(y_true), probs, pos_label=1))
    else:
        brier = 0.0

    logger.debug(
        "Scored user %s: total=%d correct=%d incorrect=%d pending=%d "
        "accuracy=%.2f brier=%.4f",
        user_id, total, correct, incorrect, pending, accuracy, brier,
    )

    return StatsSnapshot(
        user_id=user_id,
        total_predictions=total,
        correct_predictions=correct,
        incorrect_predictions=incorrect,
        pending_predictions=pending,
        accuracy=to_fixed(accuracy, ACCURACY_QUANTUM),
        brier_score=to_fixed(brier, BRIER_QUANTUM),
    )
