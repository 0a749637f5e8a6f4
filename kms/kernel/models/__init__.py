"""
Kernel Data Models

SQLAlchemy models for every persisted entity. Importing this package
registers all tables on ``Base.metadata``.
"""

from kms.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow
from kms.kernel.models.user import User, UserRole, PromotionStatus, RefreshToken
from kms.kernel.models.knowledge import (
    KnowledgeItem,
    KnowledgeApproval,
    KnowledgeStatus,
    ApprovalDecision,
)
from kms.kernel.models.validation import (
    ValidationWorkflow,
    ValidationHistoryEntry,
    ValidationStatus,
    ValidationPriority,
    ReviewAction,
    TERMINAL_STATUSES,
    OPEN_STATUSES,
)
from kms.kernel.models.audit_log import AuditLog, TargetModel
from kms.kernel.models.leaderboard import LeaderboardEntry
from kms.kernel.models.configuration import Configuration, ConfigCategory
from kms.kernel.models.mentorship import (
    Mentorship,
    MentorshipStatus,
    LIVE_MENTORSHIP_STATUSES,
)
from kms.kernel.models.training import (
    TrainingModule,
    TrainingProgress,
    TrainingSession,
    TrainingCategory,
    Difficulty,
    ProgressStatus,
    SessionStatus,
    AttendanceStatus,
)
from kms.kernel.models.migration import Migration, MigrationStatus, CANCELLABLE_STATUSES

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    "utcnow",
    # User
    "User",
    "UserRole",
    "PromotionStatus",
    "RefreshToken",
    # Knowledge
    "KnowledgeItem",
    "KnowledgeApproval",
    "KnowledgeStatus",
    "ApprovalDecision",
    # Validation
    "ValidationWorkflow",
    "ValidationHistoryEntry",
    "ValidationStatus",
    "ValidationPriority",
    "ReviewAction",
    "TERMINAL_STATUSES",
    "OPEN_STATUSES",
    # Audit
    "AuditLog",
    "TargetModel",
    # Leaderboard
    "LeaderboardEntry",
    # Configuration
    "Configuration",
    "ConfigCategory",
    # Mentorship
    "Mentorship",
    "MentorshipStatus",
    "LIVE_MENTORSHIP_STATUSES",
    # Training
    "TrainingModule",
    "TrainingProgress",
    "TrainingSession",
    "TrainingCategory",
    "Difficulty",
    "ProgressStatus",
    "SessionStatus",
    "AttendanceStatus",
    # Migration
    "Migration",
    "MigrationStatus",
    "CANCELLABLE_STATUSES",
]
