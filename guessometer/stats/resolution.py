"""
Resolution classifier: reduce raw outcome markers to pending/correct/incorrect.

Never raises. Anything that is not an affirmative, recognised resolution is
treated as pending.
"""

from __future__ import annotations

from typing import Any

from guessometer.stats.types import Outcome

AFFIRMATIVE = "Yes"
NEGATIVE = "No"


def _marker(value: Any) -> str | None:
    # Linked/multi-select fields arrive as single-element lists.
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if isinstance(value, str):
        return value.strip()
    return None


def classify_outcome(predicted_outcome: Any, outcome_known: Any) -> Outcome:
    """Map an external (predicted outcome, outcome known) pair to an Outcome.

    Args:
        predicted_outcome: Marker compared against ``"Yes"`` / ``"No"``.
        outcome_known: Resolution flag; only ``"Yes"`` counts as known.

    Returns:
        ``CORRECT`` for a known ``Yes``, ``INCORRECT`` for a known ``No``,
        ``PENDING`` otherwise.
    """
    if _marker(outcome_known) != AFFIRMATIVE:
        return Outcome.PENDING

    marker = _marker(predicted_outcome)
    if marker == AFFIRMATIVE:
        return Outcome.CORRECT
    if marker == NEGATIVE:
        return Outcome.INCORRECT
    return Outcome.PENDING


def normalize_outcome(value: Any) -> Outcome:
    """Coerce a stored outcome value; empty or unknown values become PENDING."""
    if isinstance(value, Outcome):
        return value
    if isinstance(value, str):
        try:
            return Outcome(value.strip().lower())
        except ValueError:
            return Outcome.PENDING
    return Outcome.PENDING


def is_resolved(value: Any) -> bool:
    return normalize_outcome(value) is not Outcome.PENDING
