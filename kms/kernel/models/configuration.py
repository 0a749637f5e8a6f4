"""
Runtime configuration rows (business settings editable by administrators).
"""

import uuid
from enum import Enum
from typing import Any, Optional

from sqlalchemy import Boolean, ForeignKey, JSON, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from kms.kernel.models.base import Base, TimestampMixin, generate_uuid


class ConfigCategory(str, Enum):
    SYSTEM = "system"
    WORKFLOW = "workflow"
    AI = "ai"
    NOTIFICATION = "notification"
    SECURITY = "security"
    LEADERBOARD = "leaderboard"


class Configuration(Base, TimestampMixin):
    """A single key/value setting."""

    __tablename__ = "configurations"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    key: Mapped[str] = mapped_column(
        String(200),
        unique=True,
        index=True,
        nullable=False,
    )
    value: Mapped[Any] = mapped_column(
        JSON,
        nullable=True,
    )
    category: Mapped[str] = mapped_column(
        String(30),
        default=ConfigCategory.SYSTEM.value,
        nullable=False,
        index=True,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    is_editable: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    last_modified_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Configuration {self.key}={self.value!r}>"
