"""
Knowledge item models.

A knowledge item is an uploaded document plus its metadata. Review
decisions are kept as an ordered list of approvals.
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
    Index,
    Integer,
    JSON,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kms.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow

if TYPE_CHECKING:
    from kms.kernel.models.user import User


class KnowledgeStatus(str, Enum):
    """Lifecycle status of a knowledge item."""
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    REVISION = "Revision"
    ARCHIVED = "Archived"


class ApprovalDecision(str, Enum):
    """Decision recorded on an item's approval list."""
    APPROVED = "Approved"
    REJECTED = "Rejected"
    REQUEST_CHANGES = "Request Changes"


class KnowledgeItem(Base, TimestampMixin):
    """An uploaded piece of knowledge awaiting or past review."""

    __tablename__ = "knowledge_items"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    category: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )
    tags: Mapped[List[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    region: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    content_url: Mapped[Optional[str]] = mapped_column(
        String(1000),
        nullable=True,
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=KnowledgeStatus.PENDING.value,
        nullable=False,
    )
    # [{name, type, size, url}]
    attachments: Mapped[List[dict]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    keywords: Mapped[List[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    duplicate_score: Mapped[float] = mapped_column(
        Float,
        default=0.0,
        nullable=False,
    )

    # Quality review
    quality_flag: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    quality_score: Mapped[int] = mapped_column(
        Integer,
        default=100,
        nullable=False,
    )
    quality_issues: Mapped[List[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )

    views: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    version: Mapped[int] = mapped_column(
        Integer,
        default=1,
        nullable=False,
    )

    # Relationships
    author: Mapped["User"] = relationship(
        "User",
        lazy="selectin",
    )
    approvals: Mapped[List["KnowledgeApproval"]] = relationship(
        "KnowledgeApproval",
        back_populates="knowledge_item",
        cascade="all, delete-orphan",
        order_by="KnowledgeApproval.created_at",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_knowledge_items_status_created", "status", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<KnowledgeItem {self.title!r} [{self.status}] v{self.version}>"


class KnowledgeApproval(Base):
    """One review decision on a knowledge item (append-only)."""

    __tablename__ = "knowledge_approvals"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    knowledge_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("knowledge_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    approver_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
    )
    comment: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    knowledge_item: Mapped["KnowledgeItem"] = relationship(
        "KnowledgeItem",
        back_populates="approvals",
    )

    def __repr__(self) -> str:
        return f"<KnowledgeApproval {self.status} by {self.approver_id}>"
