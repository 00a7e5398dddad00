"""
Running accuracy / confidence / calibration series for charting.

Walks a user's resolved predictions in creation order and records the
running averages after each one, keyed by calendar date. When several
predictions fall on the same date, the point recorded for that date is the
running value after the last of them; earlier same-day snapshots are
overwritten rather than merged.
"""

from __future__ import annotations

import calendar
import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Optional

from guessometer.stats.resolution import is_resolved, normalize_outcome
from guessometer.stats.scoring import brier_contribution
from guessometer.stats.types import (
    PERIOD_MONTHS,
    Outcome,
    ScorablePrediction,
    TrendPeriod,
    TrendPoint,
)

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def months_before(moment: datetime, months: int) -> datetime:
    """Step back whole calendar months, clamping the day to the target month."""
    month_index = moment.month - 1 - months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def period_cutoff(period: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """Start of the rolling window for *period*, or None for ``"all"``.

    Raises:
        ValueError: If *period* is not one of 1m / 6m / 12m / all.
    """
    if period not in PERIOD_MONTHS:
        raise ValueError(f"Unknown trend period {period!r}; expected one of {sorted(PERIOD_MONTHS)}")
    months = PERIOD_MONTHS[period]
    if months is None:
        return None
    return months_before(as_utc(now or datetime.now(timezone.utc)), months)


def compute_trend(
    predictions: Iterable[ScorablePrediction],
    period: TrendPeriod = "all",
    include_brier: bool = False,
    now: Optional[datetime] = None,
) -> list[TrendPoint]:
    """Build the running-average series over resolved predictions.

    Args:
        predictions: One user's predictions (public and private).
        period: Rolling window on creation time: ``1m``, ``6m``, ``12m`` or ``all``.
        include_brier: Also track the running Brier score.
        now: Reference time for the window (defaults to current UTC time).

    Returns:
        Points in ascending date order; empty when nothing is resolved.
    """
    cutoff = period_cutoff(period, now)

    resolved = []
    for p in predictions:
        if not is_resolved(p.outcome) or p.created_at is None:
            continue
        if cutoff is not None and as_utc(p.created_at) < cutoff:
            continue
        resolved.append(p)
    # sort is stable: same-instant rows keep their storage order
    resolved.sort(key=lambda p: as_utc(p.created_at))

    by_date: dict[str, TrendPoint] = {}
    count = correct = 0
    confidence_sum = 0.0
    brier_sum = 0.0

    for p in resolved:
        outcome = normalize_outcome(p.outcome)
        count += 1
        if outcome is Outcome.CORRECT:
            correct += 1
        confidence_sum += p.confidence_level

        point = TrendPoint(
            date=p.created_at.date().isoformat(),
            accuracy=correct / count * 100,
            confidence=confidence_sum / count,
        )
        if include_brier:
            brier_sum += brier_contribution(p.confidence_level, outcome)
            point.brier_score = brier_sum / count
        by_date[point.date] = point

    logger.debug(
        "Trend over %d resolved predictions (period=%s) -> %d points",
        count, period, len(by_date),
    )
    return [by_date[d] for d in sorted(by_date)]
