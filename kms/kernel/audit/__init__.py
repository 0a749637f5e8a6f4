"""
Audit trail - append-only action log.
"""

from kms.kernel.audit.actions import AuditAction, CRITICAL_ACTIONS
from kms.kernel.audit.audit_logger import AuditLogger, pagination

__all__ = [
    "AuditAction",
    "CRITICAL_ACTIONS",
    "AuditLogger",
    "pagination",
]
