"""
Role-based access control.

Authorization is a flat allow-list check: a request is permitted iff the
user's role is a member of the route's list. There is no role hierarchy
and no resource-level scoping.
"""

from typing import Iterable

from kms.kernel.errors import AuthorizationError
from kms.kernel.models.user import UserRole

CONSULTANT = UserRole.CONSULTANT.value
KNOWLEDGE_CHAMPION = UserRole.KNOWLEDGE_CHAMPION.value
PROJECT_MANAGER = UserRole.PROJECT_MANAGER.value
ADMINISTRATOR = UserRole.ADMINISTRATOR.value
GOVERNANCE_COUNCIL = UserRole.GOVERNANCE_COUNCIL.value

# Route allow-lists
ADMIN_TIER = (ADMINISTRATOR, GOVERNANCE_COUNCIL)
REVIEWER_ROLES = (KNOWLEDGE_CHAMPION, ADMINISTRATOR, GOVERNANCE_COUNCIL)
ADMIN_ONLY = (ADMINISTRATOR,)
MANAGER_ROLES = (PROJECT_MANAGER, ADMINISTRATOR)
SESSION_HOSTS = (KNOWLEDGE_CHAMPION, ADMINISTRATOR)


def is_allowed(role: str, allowed: Iterable[str]) -> bool:
    """True iff role is one of the allowed roles (exact match)."""
    return role in tuple(allowed)


def ensure_role(role: str, allowed: Iterable[str]) -> None:
    """
    Raise AuthorizationError unless role is allowed.

    Raises:
        AuthorizationError: "Not authorized: role '<role>' is not permitted"
    """
    if not is_allowed(role, allowed):
        raise AuthorizationError(f"Not authorized: role '{role}' is not permitted")


def is_admin_tier(role: str) -> bool:
    return role in ADMIN_TIER


def is_reviewer(role: str) -> bool:
    return role in REVIEWER_ROLES
