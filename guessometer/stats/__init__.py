"""
Statistics engine: outcome classification, accuracy and Brier scoring,
running trends, and leaderboard ranking.

Everything in this package is pure and synchronous; persistence lives in
``guessometer.api.services.stats_service``.
"""

from guessometer.stats.leaderboard import build_leaderboard
from guessometer.stats.resolution import classify_outcome, normalize_outcome
from guessometer.stats.scoring import compute_stats
from guessometer.stats.trend import compute_trend
from guessometer.stats.types import (
    LeaderboardRow,
    Outcome,
    StatsSnapshot,
    TrendPeriod,
    TrendPoint,
)

__all__ = [
    "LeaderboardRow",
    "Outcome",
    "StatsSnapshot",
    "TrendPeriod",
    "TrendPoint",
    "build_leaderboard",
    "classify_outcome",
    "compute_stats",
    "compute_trend",
    "normalize_outcome",
]
