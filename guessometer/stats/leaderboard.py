"""
Leaderboard ranking over persisted per-user stats.
"""

from __future__ import annotations

from collections.abc import Iterable

from guessometer.stats.types import LeaderboardRow


def build_leaderboard(rows: Iterable[LeaderboardRow]) -> list[LeaderboardRow]:
    """Rank users by accuracy, then by prediction volume.

    Users with no predictions are dropped. No limit is applied; callers cap
    the list if their rendering needs it. Ranks are assigned 1..N in order.
    """
    eligible = [r for r in rows if (r.total_predictions or 0) > 0]
    eligible.sort(key=lambda r: (r.accuracy, r.total_predictions), reverse=True)
    for i, row in enumerate(eligible):
        row.rank = i + 1
    return eligible
