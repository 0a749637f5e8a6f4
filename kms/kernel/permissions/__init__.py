"""
Permission Core - static role allow-lists.
"""

from kms.kernel.permissions.rbac import (
    ADMIN_ONLY,
    ADMIN_TIER,
    MANAGER_ROLES,
    REVIEWER_ROLES,
    SESSION_HOSTS,
    ensure_role,
    is_admin_tier,
    is_allowed,
    is_reviewer,
)

__all__ = [
    "ADMIN_ONLY",
    "ADMIN_TIER",
    "MANAGER_ROLES",
    "REVIEWER_ROLES",
    "SESSION_HOSTS",
    "ensure_role",
    "is_admin_tier",
    "is_allowed",
    "is_reviewer",
]
