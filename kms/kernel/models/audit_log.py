"""
Append-only audit log.

Rows are only ever inserted; there is no update or delete path.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Index, JSON, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kms.kernel.models.base import Base, generate_uuid, utcnow

if TYPE_CHECKING:
    from kms.kernel.models.user import User


class TargetModel(str, Enum):
    """Kinds of entity an audit entry can point at."""
    KNOWLEDGE_ITEM = "KnowledgeItem"
    USER = "User"
    CONFIGURATION = "Configuration"
    VALIDATION = "Validation"
    MIGRATION = "Migration"
    MENTORSHIP = "Mentorship"
    TRAINING_MODULE = "TrainingModule"
    TRAINING_SESSION = "TrainingSession"
    LEADERBOARD = "Leaderboard"


class AuditLog(Base):
    """Immutable record of a significant action."""

    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    action: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )
    actor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    target_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        nullable=True,
        index=True,
    )
    target_model: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )
    details: Mapped[dict] = mapped_column(
        JSON,
        default=dict,
        nullable=False,
    )
    ip_address: Mapped[Optional[str]] = mapped_column(
        String(45),  # IPv6 max length
        nullable=True,
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )

    actor: Mapped[Optional["User"]] = relationship(
        "User",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_audit_logs_target", "target_model", "target_id"),
        Index("ix_audit_logs_action_time", "action", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} {self.target_model}:{self.target_id}>"
