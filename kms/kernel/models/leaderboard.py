"""
Leaderboard entry: per-user contribution counters and derived score.
"""

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Date, DateTime, ForeignKey, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kms.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow

if TYPE_CHECKING:
    from kms.kernel.models.user import User


class LeaderboardEntry(Base, TimestampMixin):
    """
    Contribution counters for one user.

    total_score is always the fixed-weight dot product of the five
    counters; weekly/monthly/yearly hold weighted points earned in the
    current calendar period.
    """

    __tablename__ = "leaderboard_entries"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    # Counters
    uploads: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    approvals: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    downloads: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    validations: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    total_score: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        index=True,
    )
    rank: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Streaks
    current_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_activity_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )

    # Period stats
    weekly: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    monthly: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    yearly: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    last_calculated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    user: Mapped["User"] = relationship(
        "User",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<LeaderboardEntry user={self.user_id} total={self.total_score}>"
