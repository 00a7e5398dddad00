"""
Tests for StatsService against a temporary SQLite database.

Verifies:
    1. calculate_user_stats() upserts exactly one row per user (idempotent)
    2. Only public predictions feed the persisted stats
    3. get_user_stats() computes on first access
    4. get_accuracy_trend() reads resolved rows of any visibility
    5. get_leaderboard() joins users and ranks them
    6. Store failures surface as StatsUnavailableError
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from guessometer.api.services import stats_service
from guessometer.api.services.stats_service import StatsService, StatsUnavailableError
from guessometer.db.models import UserStats


async def _seed_worked_example(add_user, add_prediction, user_id: str = "alice") -> None:
    await add_user(user_id)
    await add_prediction(user_id, confidence=80, outcome="correct")
    await add_prediction(user_id, confidence=60, outcome="incorrect")
    await add_prediction(user_id, confidence=90, outcome="correct")


class TestCalculateUserStats:
    @pytest.mark.asyncio
    async def test_persists_worked_example(self, session, add_user, add_prediction) -> None:
        await _seed_worked_example(add_user, add_prediction)

        stats = await StatsService(session).calculate_user_stats("alice")

        assert stats.total_predictions == 3
        assert stats.correct_predictions == 2
        assert stats.incorrect_predictions == 1
        assert Decimal(str(stats.accuracy)) == Decimal("66.67")
        assert Decimal(str(stats.brier_score)) == Decimal("0.1367")

    @pytest.mark.asyncio
    async def test_upsert_is_idempotent(self, session, add_user, add_prediction) -> None:
        await _seed_worked_example(add_user, add_prediction)
        service = StatsService(session)

        first_total = (await service.calculate_user_stats("alice")).total_predictions
        await add_prediction("alice", confidence=50, outcome="pending")
        second = await service.calculate_user_stats("alice")
        second_pending = second.pending_predictions
        third = await service.calculate_user_stats("alice")

        count = (
            await session.execute(
                select(func.count(UserStats.id)).where(UserStats.user_id == "alice")
            )
        ).scalar_one()
        assert count == 1
        assert first_total == 3
        assert second_pending == 1
        assert third.total_predictions == 4

    @pytest.mark.asyncio
    async def test_private_predictions_ignored(self, session, add_user, add_prediction) -> None:
        await add_user("alice")
        await add_prediction("alice", confidence=90, outcome="correct")
        await add_prediction("alice", confidence=90, outcome="incorrect", is_public=False)

        stats = await StatsService(session).calculate_user_stats("alice")

        assert stats.total_predictions == 1
        assert Decimal(str(stats.accuracy)) == Decimal("100")

    @pytest.mark.asyncio
    async def test_user_without_predictions(self, session, add_user) -> None:
        await add_user("alice")
        stats = await StatsService(session).calculate_user_stats("alice")
        assert stats.total_predictions == 0
        assert Decimal(str(stats.accuracy)) == 0
        assert Decimal(str(stats.brier_score)) == 0

    @pytest.mark.asyncio
    async def test_store_failure_raises_stats_unavailable(self, session, add_user) -> None:
        await add_user("alice")
        session.execute = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("db down")))

        with pytest.raises(StatsUnavailableError):
            await StatsService(session).calculate_user_stats("alice")

    @pytest.mark.asyncio
    async def test_concurrent_recomputes_share_then_drop_lock(
        self, session, add_user, add_prediction
    ) -> None:
        await _seed_worked_example(add_user, add_prediction)
        service = StatsService(session)

        held = stats_service._lock_for("alice")
        assert stats_service._lock_for("alice") is held
        del held

        results = await asyncio.gather(
            service.calculate_user_stats("alice"),
            service.calculate_user_stats("alice"),
        )

        assert [r.total_predictions for r in results] == [3, 3]
        assert "alice" not in stats_service._user_locks


class TestReads:
    @pytest.mark.asyncio
    async def test_get_user_stats_computes_on_first_access(
        self, session, add_user, add_prediction
    ) -> None:
        await _seed_worked_example(add_user, add_prediction)
        service = StatsService(session)

        stats = await service.get_user_stats("alice")
        again = await service.get_user_stats("alice")

        assert stats.total_predictions == 3
        assert again.id == stats.id

    @pytest.mark.asyncio
    async def test_trend_includes_private_resolved(self, session, add_user, add_prediction) -> None:
        await add_user("alice")
        base = datetime.now(timezone.utc) - timedelta(days=3)
        await add_prediction("alice", 80, "correct", created_at=base)
        await add_prediction("alice", 60, "incorrect", is_public=False, created_at=base + timedelta(days=1))
        await add_prediction("alice", 70, "pending", created_at=base + timedelta(days=2))

        points = await StatsService(session).get_accuracy_trend("alice", "1m", include_brier=True)

        assert len(points) == 2
        assert points[-1].accuracy == pytest.approx(50.0)
        assert points[-1].brier_score == pytest.approx(0.2)

    @pytest.mark.asyncio
    async def test_trend_unknown_period(self, session, add_user) -> None:
        await add_user("alice")
        with pytest.raises(ValueError):
            await StatsService(session).get_accuracy_trend("alice", "2y")  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_leaderboard(self, session, add_user, add_prediction) -> None:
        await _seed_worked_example(add_user, add_prediction, "alice")
        await add_user("bob", display_name="Bobby")
        await add_prediction("bob", 70, "correct")
        await add_user("carol")
        service = StatsService(session)
        for user_id in ("alice", "bob", "carol"):
            await service.calculate_user_stats(user_id)

        board = await service.get_leaderboard()

        assert [r.user_id for r in board] == ["bob", "alice"]
        assert board[0].display_name == "Bobby"
        assert board[0].rank == 1
        assert board[1].rank == 2
        assert len(await service.get_leaderboard(limit=1)) == 1
