"""
StatsService -- bridges the pure statistics engine with persistence.

Responsibility:
    1. Read a user's prediction rows and recompute their UserStats from
       scratch (never incrementally), then upsert the row keyed by user_id.
    2. Serve the accuracy trend straight from raw prediction rows.
    3. Serve the leaderboard from persisted UserStats joined with users.

The recompute is the only write path for ``user_stats``. Read-compute-upsert
for one user is serialized in-process by a per-user lock; across processes
the last full recompute wins, which self-corrects on the next trigger.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from guessometer.db.models import Prediction, User, UserStats
from guessometer.stats.leaderboard import build_leaderboard
from guessometer.stats.scoring import compute_stats
from guessometer.stats.trend import compute_trend
from guessometer.stats.types import (
    RESOLVED_OUTCOMES,
    LeaderboardRow,
    TrendPeriod,
    TrendPoint,
)

logger = logging.getLogger(__name__)

# Entries vanish once no recompute holds or waits on the lock.
_user_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()


class StatsUnavailableError(RuntimeError):
    """Stats could not be read or recomputed from the store."""


def _lock_for(user_id: str) -> asyncio.Lock:
    lock = _user_locks.get(user_id)
    if lock is None:
        lock = _user_locks[user_id] = asyncio.Lock()
    return lock


def _upsert_statement(dialect_name: str, values: dict):
    if dialect_name == "postgresql":
        insert = postgresql.insert
    elif dialect_name == "sqlite":
        insert = sqlite.insert
    else:
        raise StatsUnavailableError(f"No upsert support for dialect {dialect_name!r}")

    stmt = insert(UserStats).values(**values)
    update_cols = {k: stmt.excluded[k] for k in values if k != "user_id"}
    return stmt.on_conflict_do_update(index_elements=[UserStats.user_id], set_=update_cols)


class StatsService:
    """Per-user stats recomputation, trend and leaderboard queries.

    Operates on a single session supplied by the caller.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def calculate_user_stats(self, user_id: str) -> UserStats:
        """Recompute and upsert the stats row for *user_id*.

        Commits its own transaction. Any store failure is rolled back and
        re-raised as StatsUnavailableError.
        """
        async with _lock_for(user_id):
            try:
                result = await self.session.execute(
                    select(Prediction).where(
                        Prediction.user_id == user_id,
                        Prediction.is_public.is_(True),
                    )
                )
                snapshot = compute_stats(user_id, result.scalars().all())

                dialect = self.session.get_bind().dialect.name
                await self.session.execute(_upsert_statement(dialect, snapshot.to_row()))
                await self.session.commit()

                result = await self.session.execute(
                    select(UserStats)
                    .where(UserStats.user_id == user_id)
                    .execution_options(populate_existing=True)
                )
                stats = result.scalar_one()
            except SQLAlchemyError as exc:
                await self.session.rollback()
                logger.error("Stats recompute failed for user %s: %s", user_id, exc)
                raise StatsUnavailableError(f"Stats unavailable for user {user_id}") from exc

        logger.info(
            "Recalculated stats for user %s: total=%d accuracy=%s brier=%s",
            user_id,
            snapshot.total_predictions,
            snapshot.accuracy,
            snapshot.brier_score,
        )
        return stats

    async def get_user_stats(self, user_id: str) -> UserStats:
        """Return the persisted stats row, computing it on first access."""
        try:
            result = await self.session.execute(
                select(UserStats).where(UserStats.user_id == user_id)
            )
            stats = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StatsUnavailableError(f"Stats unavailable for user {user_id}") from exc

        if stats is None:
            stats = await self.calculate_user_stats(user_id)
        return stats

    async def get_accuracy_trend(
        self,
        user_id: str,
        period: TrendPeriod = "all",
        include_brier: bool = False,
    ) -> list[TrendPoint]:
        """Running accuracy series over the user's resolved predictions.

        Raises:
            ValueError: If *period* is unknown.
        """
        try:
            result = await self.session.execute(
                select(Prediction)
                .where(
                    Prediction.user_id == user_id,
                    Prediction.outcome.in_(sorted(RESOLVED_OUTCOMES)),
                )
                .order_by(Prediction.created_at.asc())
            )
        except SQLAlchemyError as exc:
            raise StatsUnavailableError(f"Trend unavailable for user {user_id}") from exc
        return compute_trend(result.scalars().all(), period=period, include_brier=include_brier)

    async def get_leaderboard(self, limit: Optional[int] = None) -> list[LeaderboardRow]:
        """Users with at least one prediction, best accuracy first."""
        try:
            result = await self.session.execute(
                select(UserStats, User)
                .join(User, UserStats.user_id == User.id)
                .where(UserStats.total_predictions > 0)
            )
        except SQLAlchemyError as exc:
            raise StatsUnavailableError("Leaderboard unavailable") from exc
        rows = [
            LeaderboardRow(
                user_id=stats.user_id,
                display_name=user.display_name,
                email=user.email,
                total_predictions=stats.total_predictions,
                correct_predictions=stats.correct_predictions,
                incorrect_predictions=stats.incorrect_predictions,
                pending_predictions=stats.pending_predictions,
                accuracy=stats.accuracy,
                brier_score=stats.brier_score,
                last_calculated=stats.last_calculated,
                user_created_at=user.created_at,
            )
            for stats, user in result.all()
        ]
        ranked = build_leaderboard(rows)
        return ranked[:limit] if limit is not None else ranked
