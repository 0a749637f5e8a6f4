"""
Training models: self-paced modules, per-user progress, live sessions.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kms.kernel.models.base import Base, TimestampMixin, generate_uuid

if TYPE_CHECKING:
    from kms.kernel.models.user import User


class TrainingCategory(str, Enum):
    ONBOARDING = "Onboarding"
    TECHNICAL = "Technical"
    SOFT_SKILLS = "Soft Skills"
    COMPLIANCE = "Compliance"
    PRODUCT = "Product"
    PROCESS = "Process"


class Difficulty(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class ProgressStatus(str, Enum):
    NOT_STARTED = "NotStarted"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"


class SessionStatus(str, Enum):
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class AttendanceStatus(str, Enum):
    REGISTERED = "Registered"
    ATTENDED = "Attended"
    NO_SHOW = "NoShow"


class TrainingModule(Base, TimestampMixin):
    """A self-paced learning module made of ordered content pieces."""

    __tablename__ = "training_modules"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    difficulty: Mapped[str] = mapped_column(
        String(20),
        default=Difficulty.BEGINNER.value,
        nullable=False,
    )
    estimated_duration: Mapped[int] = mapped_column(
        Integer,
        default=30,  # minutes
        nullable=False,
    )
    # [{type, title, url, duration, order}]
    content: Mapped[List[dict]] = mapped_column(JSON, default=list, nullable=False)
    tags: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    target_roles: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    is_published: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    created_by: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id"),
        nullable=False,
    )
    completions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    average_rating: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    total_ratings: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<TrainingModule {self.title!r}>"


class TrainingProgress(Base, TimestampMixin):
    """One user's progress through one module."""

    __tablename__ = "training_progress"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    module_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("training_modules.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=ProgressStatus.NOT_STARTED.value,
        nullable=False,
    )
    progress: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # [{content_index, completed_at}]
    completed_content: Mapped[List[dict]] = mapped_column(JSON, default=list, nullable=False)
    # [{content_index, score, max_score, attempts, completed_at}]
    quiz_scores: Mapped[List[dict]] = mapped_column(JSON, default=list, nullable=False)
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    module: Mapped["TrainingModule"] = relationship(
        "TrainingModule",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "module_id", name="uq_training_progress_user_module"),
    )

    def __repr__(self) -> str:
        return f"<TrainingProgress user={self.user_id} module={self.module_id} {self.progress}%>"


class TrainingSession(Base, TimestampMixin):
    """A scheduled, instructor-led session."""

    __tablename__ = "training_sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    instructor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id"),
        nullable=False,
    )
    scheduled_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    duration: Mapped[int] = mapped_column(Integer, nullable=False)  # minutes
    meeting_link: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    max_participants: Mapped[int] = mapped_column(Integer, default=50, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default=SessionStatus.SCHEDULED.value,
        nullable=False,
    )
    related_module_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("training_modules.id", ondelete="SET NULL"),
        nullable=True,
    )
    # [{user_id, status, joined_at}]
    attendees: Mapped[List[dict]] = mapped_column(JSON, default=list, nullable=False)

    instructor: Mapped["User"] = relationship(
        "User",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<TrainingSession {self.title!r} {self.scheduled_date}>"
