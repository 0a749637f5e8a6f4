"""
Legacy-content migration jobs.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, JSON, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from kms.kernel.models.base import Base, TimestampMixin, generate_uuid


class MigrationStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    FAILED = "Failed"
    CANCELLED = "Cancelled"


CANCELLABLE_STATUSES = frozenset({
    MigrationStatus.PENDING.value,
    MigrationStatus.IN_PROGRESS.value,
})


class Migration(Base, TimestampMixin):
    """An import job that turns legacy records into Pending knowledge items."""

    __tablename__ = "migrations"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source_system: Mapped[str] = mapped_column(String(100), nullable=False)
    target_system: Mapped[str] = mapped_column(
        String(100),
        default="KMS",
        nullable=False,
    )
    # Holds the records to import under "records"
    connection_details: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default=MigrationStatus.PENDING.value,
        nullable=False,
        index=True,
    )

    # Options
    batch_size: Mapped[int] = mapped_column(Integer, default=100, nullable=False)
    dry_run: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    skip_duplicates: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Progress
    total: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    processed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    failed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    percentage: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    # [{timestamp, level, message}]
    logs: Mapped[List[dict]] = mapped_column(JSON, default=list, nullable=False)

    initiated_by: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id"),
        nullable=False,
    )
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<Migration {self.name!r} [{self.status}]>"
