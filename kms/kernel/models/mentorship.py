"""
Mentorship pairing between two users.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, JSON, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kms.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow

if TYPE_CHECKING:
    from kms.kernel.models.user import User


class MentorshipStatus(str, Enum):
    ACTIVE = "Active"
    COMPLETED = "Completed"
    PAUSED = "Paused"
    CANCELLED = "Cancelled"


# A pair may only have one mentorship in these states at a time
LIVE_MENTORSHIP_STATUSES = (
    MentorshipStatus.ACTIVE.value,
    MentorshipStatus.PAUSED.value,
)


class Mentorship(Base, TimestampMixin):
    """A mentor/mentee relationship with its goals, sessions and feedback."""

    __tablename__ = "mentorships"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    mentor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id"),
        nullable=False,
    )
    mentee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=MentorshipStatus.ACTIVE.value,
        nullable=False,
    )
    focus_areas: Mapped[List[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    # [{description, target_date, completed}]
    goals: Mapped[List[dict]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    # [{date, duration, notes, topics}]
    sessions: Mapped[List[dict]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    # [{from_user_id, rating, comment, created_at}]
    feedback: Mapped[List[dict]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    start_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    end_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    mentor: Mapped["User"] = relationship(
        "User",
        foreign_keys=[mentor_id],
        lazy="selectin",
    )
    mentee: Mapped["User"] = relationship(
        "User",
        foreign_keys=[mentee_id],
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_mentorships_mentor_status", "mentor_id", "status"),
        Index("ix_mentorships_mentee_status", "mentee_id", "status"),
    )

    def is_participant(self, user_id: uuid.UUID) -> bool:
        return user_id in (self.mentor_id, self.mentee_id)

    def __repr__(self) -> str:
        return f"<Mentorship {self.mentor_id}->{self.mentee_id} [{self.status}]>"
