"""
Leaderboard schemas.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel

from kms.kernel.models.leaderboard import LeaderboardEntry
from kms.schemas.auth import UserSummary


class LeaderboardRow(BaseModel):
    """One ranked leaderboard line."""

    rank: int
    score: int
    user: UserSummary
    uploads: int
    approvals: int
    views: int
    downloads: int
    validations: int
    total_score: int
    current_streak: int
    longest_streak: int
    last_activity_date: Optional[date] = None
    weekly: int
    monthly: int
    yearly: int

    @classmethod
    def from_entry(cls, entry: LeaderboardEntry, rank: int, score: int) -> "LeaderboardRow":
        return cls(
            rank=rank,
            score=score,
            user=UserSummary.model_validate(entry.user),
            uploads=entry.uploads,
            approvals=entry.approvals,
            views=entry.views,
            downloads=entry.downloads,
            validations=entry.validations,
            total_score=entry.total_score,
            current_streak=entry.current_streak,
            longest_streak=entry.longest_streak,
            last_activity_date=entry.last_activity_date,
            weekly=entry.weekly,
            monthly=entry.monthly,
            yearly=entry.yearly,
        )


class RecalculateResponse(BaseModel):
    message: str
    entries: int
