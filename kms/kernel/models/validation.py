"""
Validation workflow models.

One workflow row per knowledge item (enforced by a unique constraint)
plus an append-only review history.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kms.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow

if TYPE_CHECKING:
    from kms.kernel.models.knowledge import KnowledgeItem
    from kms.kernel.models.user import User


class ValidationStatus(str, Enum):
    """Workflow states."""
    PENDING = "Pending"
    IN_REVIEW = "InReview"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    REVISION_REQUESTED = "RevisionRequested"


class ValidationPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class ReviewAction(str, Enum):
    """Actions recorded in the review history."""
    ASSIGNED = "Assigned"
    IN_REVIEW = "InReview"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    REVISION_REQUESTED = "RevisionRequested"
    REASSIGNED = "Reassigned"


TERMINAL_STATUSES = frozenset({
    ValidationStatus.APPROVED.value,
    ValidationStatus.REJECTED.value,
})

OPEN_STATUSES = (
    ValidationStatus.PENDING.value,
    ValidationStatus.IN_REVIEW.value,
)


class ValidationWorkflow(Base, TimestampMixin):
    """
    Review workflow for a single knowledge item.

    Invariants:
    - every state change appends exactly one history entry
    - completed_at is set iff status is Approved or Rejected
    - rows are never deleted
    """

    __tablename__ = "validation_workflows"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    knowledge_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("knowledge_items.id"),
        nullable=False,
    )
    assigned_reviewer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("users.id"),
        nullable=True,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(30),
        default=ValidationStatus.PENDING.value,
        nullable=False,
        index=True,
    )
    priority: Mapped[str] = mapped_column(
        String(20),
        default=ValidationPriority.MEDIUM.value,
        nullable=False,
    )
    review_notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    revision_comments: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    due_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    knowledge_item: Mapped["KnowledgeItem"] = relationship(
        "KnowledgeItem",
        lazy="selectin",
    )
    assigned_reviewer: Mapped[Optional["User"]] = relationship(
        "User",
        lazy="selectin",
    )
    history: Mapped[List["ValidationHistoryEntry"]] = relationship(
        "ValidationHistoryEntry",
        back_populates="workflow",
        cascade="all, delete-orphan",
        order_by="ValidationHistoryEntry.sequence",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("knowledge_item_id", name="uq_validation_workflows_item"),
    )

    def __repr__(self) -> str:
        return f"<ValidationWorkflow {self.id} item={self.knowledge_item_id} [{self.status}]>"


class ValidationHistoryEntry(Base):
    """One entry in a workflow's review history."""

    __tablename__ = "validation_history"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    workflow_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("validation_workflows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Position within the workflow's history, starting at 1
    sequence: Mapped[int] = mapped_column(
        nullable=False,
    )
    reviewer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("users.id"),
        nullable=True,
    )
    action: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
    )
    comment: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    workflow: Mapped["ValidationWorkflow"] = relationship(
        "ValidationWorkflow",
        back_populates="history",
    )

    def __repr__(self) -> str:
        return f"<ValidationHistoryEntry #{self.sequence} {self.action}>"
