"""
Leaderboard Engine - contribution scoring and ranking.
"""

from kms.engines.leaderboard.scorer import (
    PERIODS,
    SCORE_CATEGORIES,
    WEIGHTS,
    LeaderboardService,
    calculate_total_score,
    competition_ranks,
    period_resets,
    update_streak,
)

__all__ = [
    "LeaderboardService",
    "PERIODS",
    "SCORE_CATEGORIES",
    "WEIGHTS",
    "calculate_total_score",
    "competition_ranks",
    "period_resets",
    "update_streak",
]
