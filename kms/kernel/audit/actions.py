"""
Audit action names.
"""

from enum import Enum


class AuditAction(str, Enum):
    """Every action name written to the audit log."""

    # Users
    USER_REGISTER = "USER_REGISTER"
    USER_LOGIN = "USER_LOGIN"
    USER_LOGOUT = "USER_LOGOUT"
    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    USER_DELETED = "USER_DELETED"
    USER_ROLE_UPDATED = "USER_ROLE_UPDATED"
    PROMOTION_EVALUATION = "PROMOTION_EVALUATION"

    # Knowledge items
    KNOWLEDGE_UPLOAD = "KNOWLEDGE_UPLOAD"
    KNOWLEDGE_UPDATED = "KNOWLEDGE_UPDATED"
    KNOWLEDGE_APPROVED = "KNOWLEDGE_APPROVED"
    KNOWLEDGE_REJECTED = "KNOWLEDGE_REJECTED"
    KNOWLEDGE_REVISION = "KNOWLEDGE_REVISION"
    KNOWLEDGE_ARCHIVED = "KNOWLEDGE_ARCHIVED"
    QUALITY_UPDATE = "QUALITY_UPDATE"

    # Validation workflow
    VALIDATION_CREATED = "VALIDATION_CREATED"
    VALIDATION_INREVIEW = "VALIDATION_INREVIEW"
    VALIDATION_APPROVED = "VALIDATION_APPROVED"
    VALIDATION_REJECTED = "VALIDATION_REJECTED"
    VALIDATION_REVISIONREQUESTED = "VALIDATION_REVISIONREQUESTED"
    VALIDATION_REASSIGNED = "VALIDATION_REASSIGNED"

    # Configuration
    CONFIG_UPDATED = "CONFIG_UPDATED"
    CONFIG_DELETED = "CONFIG_DELETED"
    CONFIG_RESET = "CONFIG_RESET"

    # Leaderboard
    LEADERBOARD_RECALCULATED = "LEADERBOARD_RECALCULATED"

    # Mentorship and training
    MENTORSHIP_CREATED = "MENTORSHIP_CREATED"
    TRAINING_MODULE_CREATED = "TRAINING_MODULE_CREATED"
    TRAINING_SESSION_CREATED = "TRAINING_SESSION_CREATED"

    # Migration
    MIGRATION_CREATED = "MIGRATION_CREATED"
    MIGRATION_STARTED = "MIGRATION_STARTED"
    MIGRATION_COMPLETED = "MIGRATION_COMPLETED"
    MIGRATION_CANCELLED = "MIGRATION_CANCELLED"

    @classmethod
    def for_validation(cls, status: str) -> str:
        """VALIDATION_<STATUS> for a workflow status."""
        return f"VALIDATION_{status.upper()}"

    @classmethod
    def for_knowledge(cls, status: str) -> str:
        """KNOWLEDGE_<STATUS> for a direct review decision."""
        return f"KNOWLEDGE_{status.upper()}"


# Actions surfaced as "critical" in the audit summary
CRITICAL_ACTIONS = (
    AuditAction.USER_DELETED.value,
    AuditAction.CONFIG_UPDATED.value,
    AuditAction.KNOWLEDGE_REJECTED.value,
)
