"""
Leaderboard scoring.

Counters are maintained incrementally: every contribution issues a single
UPDATE that adds to the counter, the weighted total and the period
totals, so concurrent increments for the same user are never lost.
Reads never write (apart from creating a missing entry in get_my_stats);
a full recomputation is available as an explicit batch operation.
"""

import uuid
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from kms.kernel.errors import ValidationError
from kms.kernel.models.base import utcnow
from kms.kernel.models.leaderboard import LeaderboardEntry
from kms.kernel.models.user import User
from kms.logging_config import get_logger

logger = get_logger(__name__)

WEIGHTS: Dict[str, int] = {
    "uploads": 10,
    "approvals": 5,
    "views": 1,
    "downloads": 2,
    "validations": 8,
}

SCORE_CATEGORIES = tuple(WEIGHTS)
PERIODS = ("weekly", "monthly", "yearly")


def calculate_total_score(scores: Mapping[str, int]) -> int:
    """Weighted sum of the five counters."""
    return sum(WEIGHTS[category] * int(scores.get(category, 0) or 0) for category in WEIGHTS)


def update_streak(
    current: int,
    longest: int,
    last_activity: Optional[date],
    today: date,
) -> Tuple[int, int]:
    """
    Daily activity streak after an activity on ``today``.

    Returns:
        Tuple of (current_streak, longest_streak)
    """
    if last_activity is None:
        return 1, max(longest, 1)

    gap = (today - last_activity).days
    if gap <= 0:
        return current, longest
    if gap == 1:
        current += 1
        return current, max(longest, current)
    return 1, max(longest, 1)


def period_resets(last_activity: Optional[date], today: date) -> Dict[str, bool]:
    """Which period totals start over because a calendar period has ended."""
    if last_activity is None:
        return {period: True for period in PERIODS}
    return {
        "weekly": last_activity.isocalendar()[:2] != today.isocalendar()[:2],
        "monthly": (last_activity.year, last_activity.month) != (today.year, today.month),
        "yearly": last_activity.year != today.year,
    }


def competition_ranks(scores: Sequence[int]) -> List[int]:
    """
    Ranks for scores already sorted highest first; ties share a rank.

    ``[30, 20, 20, 10]`` ranks as ``[1, 2, 2, 4]``, the same number
    ``1 + count(strictly higher)`` gives for each score.
    """
    ranks: List[int] = []
    for index, score in enumerate(scores):
        if index and score == scores[index - 1]:
            ranks.append(ranks[-1])
        else:
            ranks.append(index + 1)
    return ranks


class LeaderboardService:
    """
    Leaderboard reads and writes for one request session.

    Usage:
        leaderboard = LeaderboardService(session)
        await leaderboard.increment_score(user.id, "uploads")
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _find(self, user_id: uuid.UUID) -> Optional[LeaderboardEntry]:
        return await self.session.scalar(
            select(LeaderboardEntry).where(LeaderboardEntry.user_id == user_id)
        )

    async def get_or_create_entry(
        self,
        user_id: uuid.UUID,
        user: Optional[User] = None,
    ) -> LeaderboardEntry:
        """Existing entry, or a new zeroed one (tolerates a concurrent insert)."""
        entry = await self._find(user_id)
        if entry is not None:
            return entry

        try:
            async with self.session.begin_nested():
                entry = LeaderboardEntry(user_id=user_id)
                if user is not None:
                    entry.user = user
                self.session.add(entry)
                await self.session.flush()
        except IntegrityError:
            entry = await self._find(user_id)
        return entry

    async def rank_of(self, total_score: int) -> int:
        """1 + number of entries with a strictly higher total."""
        higher = await self.session.scalar(
            select(func.count())
            .select_from(LeaderboardEntry)
            .where(LeaderboardEntry.total_score > total_score)
        )
        return 1 + (higher or 0)

    async def increment_score(
        self,
        user_id: uuid.UUID,
        category: str,
        amount: int = 1,
        today: Optional[date] = None,
    ) -> LeaderboardEntry:
        """
        Add ``amount`` to one counter and keep derived fields consistent.

        Raises:
            ValidationError: If category is not a score category
        """
        if category not in WEIGHTS:
            raise ValidationError("Invalid category")

        today = today or utcnow().date()
        entry = await self.get_or_create_entry(user_id)

        points = WEIGHTS[category] * amount
        resets = period_resets(entry.last_activity_date, today)
        current, longest = update_streak(
            entry.current_streak,
            entry.longest_streak,
            entry.last_activity_date,
            today,
        )

        values: Dict[str, Any] = {
            category: getattr(LeaderboardEntry, category) + amount,
            "total_score": LeaderboardEntry.total_score + points,
            "current_streak": current,
            "longest_streak": longest,
            "last_activity_date": today,
            "last_calculated": utcnow(),
        }
        for period in PERIODS:
            values[period] = points if resets[period] else getattr(LeaderboardEntry, period) + points

        await self.session.execute(
            update(LeaderboardEntry)
            .where(LeaderboardEntry.id == entry.id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.session.refresh(entry)

        entry.rank = await self.rank_of(entry.total_score)
        await self.session.flush()
        return entry

    async def get_leaderboard(
        self,
        period: Optional[str] = None,
        limit: int = 10,
    ) -> List[Dict[str, Any]]:
        """
        Top entries by total score or by a period total.

        Tied scores share a rank, matching the rank reported by
        ``get_my_stats`` for the total-score board.
        """
        if period is not None and period not in PERIODS:
            raise ValidationError("Invalid period. Use one of: weekly, monthly, yearly")

        score_column = getattr(LeaderboardEntry, period) if period else LeaderboardEntry.total_score
        result = await self.session.execute(
            select(LeaderboardEntry)
            .order_by(score_column.desc(), LeaderboardEntry.user_id)
            .limit(limit)
        )
        entries = result.scalars().all()
        scores = [getattr(entry, period) if period else entry.total_score for entry in entries]
        return [
            {"rank": rank, "entry": entry, "score": score}
            for rank, entry, score in zip(competition_ranks(scores), entries, scores)
        ]

    async def get_my_stats(self, user: User) -> Dict[str, Any]:
        """The caller's entry (created if missing) and live rank."""
        entry = await self.get_or_create_entry(user.id, user=user)
        rank = await self.rank_of(entry.total_score)
        return {"entry": entry, "rank": rank}

    async def get_top_by_category(self, category: str, limit: int = 10) -> List[Dict[str, Any]]:
        """Top entries by a single counter."""
        if category not in WEIGHTS:
            raise ValidationError("Invalid category")

        column = getattr(LeaderboardEntry, category)
        result = await self.session.execute(
            select(LeaderboardEntry)
            .order_by(column.desc(), LeaderboardEntry.user_id)
            .limit(limit)
        )
        entries = result.scalars().all()
        scores = [getattr(entry, category) for entry in entries]
        return [
            {"rank": rank, "entry": entry, "score": score}
            for rank, entry, score in zip(competition_ranks(scores), entries, scores)
        ]

    async def recalculate_all(self) -> int:
        """
        Recompute every total from its counters, then every rank.

        Returns:
            Number of entries recalculated
        """
        entries = list((await self.session.execute(select(LeaderboardEntry))).scalars().all())
        now = utcnow()
        for entry in entries:
            entry.total_score = calculate_total_score(
                {category: getattr(entry, category) for category in WEIGHTS}
            )
            entry.last_calculated = now

        entries.sort(key=lambda entry: (-entry.total_score, str(entry.user_id)))
        ranks = competition_ranks([entry.total_score for entry in entries])
        for entry, rank in zip(entries, ranks):
            entry.rank = rank

        await self.session.flush()
        logger.info("Leaderboard recalculated", extra={"entries": len(entries)})
        return len(entries)
