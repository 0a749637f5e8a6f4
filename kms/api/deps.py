"""
FastAPI dependencies for authentication, authorization, and database sessions.
"""

import uuid
from typing import Annotated, Callable, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from kms.database import get_db
from kms.engines.config import ConfigurationRepository, ConfigurationService
from kms.kernel.identity.identity_service import IdentityService
from kms.kernel.identity.jwt import verify_access_token
from kms.kernel.models.user import User
from kms.kernel.permissions import (
    ADMIN_ONLY,
    ADMIN_TIER,
    MANAGER_ROLES,
    REVIEWER_ROLES,
    SESSION_HOSTS,
    ensure_role,
)
from kms.logging_config import actor_id_var


# Security scheme
security = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: DbSession,
) -> User:
    """Get current authenticated user or raise 401."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    identity_service = IdentityService(db)
    user = await identity_service.get_user_by_id(uuid.UUID(payload.sub))

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    actor_id_var.set(str(user.id))
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def require_roles(*roles: str) -> Callable:
    """
    Dependency factory gating a route on an allow-list of roles.

    Usage:
        @router.get("/stats")
        async def stats(user: Annotated[User, Depends(require_roles(*ADMIN_TIER))]):
            ...
    """

    async def checker(user: CurrentUser) -> User:
        ensure_role(user.role, roles)
        return user

    return checker


def get_config_service(request: Request) -> ConfigurationService:
    """The process-wide configuration service built at startup."""
    return request.app.state.config_service


ConfigService = Annotated[ConfigurationService, Depends(get_config_service)]


def get_config_repository(db: DbSession) -> ConfigurationRepository:
    return ConfigurationRepository(db)


ConfigRepository = Annotated[ConfigurationRepository, Depends(get_config_repository)]


def get_request_id(request: Request) -> Optional[str]:
    """Get request correlation ID (set by RequestIdMiddleware)."""
    return getattr(request.state, "request_id", None)


def get_client_ip(request: Request) -> Optional[str]:
    """Extract client IP from request."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


# Role-gated users
ReviewerUser = Annotated[User, Depends(require_roles(*REVIEWER_ROLES))]
AdminTierUser = Annotated[User, Depends(require_roles(*ADMIN_TIER))]
AdminUser = Annotated[User, Depends(require_roles(*ADMIN_ONLY))]
ManagerUser = Annotated[User, Depends(require_roles(*MANAGER_ROLES))]
SessionHostUser = Annotated[User, Depends(require_roles(*SESSION_HOSTS))]
