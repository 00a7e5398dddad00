"""
Tests for leaderboard ordering, filtering and rank assignment.
"""

from __future__ import annotations

from decimal import Decimal

from guessometer.stats.leaderboard import build_leaderboard
from guessometer.stats.types import LeaderboardRow


def _row(user_id: str, accuracy: str, total: int) -> LeaderboardRow:
    return LeaderboardRow(
        user_id=user_id,
        display_name=user_id.title(),
        email=f"{user_id}@example.com",
        total_predictions=total,
        correct_predictions=0,
        incorrect_predictions=0,
        pending_predictions=total,
        accuracy=Decimal(accuracy),
        brier_score=Decimal("0"),
    )


def test_orders_by_accuracy_then_volume() -> None:
    ranked = build_leaderboard(
        [
            _row("carol", "50.00", 10),
            _row("alice", "75.00", 4),
            _row("bob", "75.00", 8),
            _row("dave", "90.00", 1),
        ]
    )
    assert [r.user_id for r in ranked] == ["dave", "bob", "alice", "carol"]
    assert [r.rank for r in ranked] == [1, 2, 3, 4]


def test_users_without_predictions_dropped() -> None:
    ranked = build_leaderboard([_row("alice", "0.00", 0), _row("bob", "0.00", 2)])
    assert [r.user_id for r in ranked] == ["bob"]
    assert ranked[0].rank == 1


def test_empty() -> None:
    assert build_leaderboard([]) == []
