"""
User model for identity management.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import Boolean, DateTime, JSON, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from kms.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow


class UserRole(str, Enum):
    """User roles in the system. Role is the only authorization axis."""
    CONSULTANT = "Consultant"
    KNOWLEDGE_CHAMPION = "Knowledge Champion"
    PROJECT_MANAGER = "Project Manager"
    ADMINISTRATOR = "Administrator"
    GOVERNANCE_COUNCIL = "Governance Council"


class PromotionStatus(str, Enum):
    """Outcome of a manager's promotion evaluation."""
    NONE = "None"
    RECOMMENDED = "Recommended"
    MONITORING = "Monitoring"
    NOT_READY = "Not Ready"


class User(Base, TimestampMixin):
    """User account model."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    username: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(
        String(50),
        default=UserRole.CONSULTANT.value,
        nullable=False,
        index=True,
    )
    skills: Mapped[List[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    region: Mapped[str] = mapped_column(
        String(100),
        default="Global",
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    # Manager evaluation
    promotion_status: Mapped[str] = mapped_column(
        String(20),
        default=PromotionStatus.NONE.value,
        nullable=False,
    )
    promotion_notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    last_evaluation_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<User {self.username} ({self.role})>"


class RefreshToken(Base):
    """Refresh token for JWT authentication (stored hashed)."""

    __tablename__ = "refresh_tokens"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
        index=True,
    )
    token_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    revoked: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
