"""
Administrator endpoints: user management and system statistics.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Query, Request, status

from kms.api.deps import AdminTierUser, AdminUser, DbSession, get_client_ip
from kms.engines.insights import DashboardService
from kms.kernel.audit import pagination
from kms.kernel.identity.identity_service import IdentityService
from kms.schemas.admin import AdminStatsResponse
from kms.schemas.auth import (
    AdminUserCreate,
    AdminUserUpdate,
    RoleUpdate,
    UserListResponse,
    UserResponse,
)
from kms.schemas.common import MessageResponse

router = APIRouter()


@router.get("/users", response_model=UserListResponse)
async def list_users(
    user: AdminUser,
    db: DbSession,
    role: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    users, total = await IdentityService(db).list_users(
        role=role, search=search, page=page, limit=limit
    )
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        pagination=pagination(page, limit, total),
    )


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: Request,
    data: AdminUserCreate,
    user: AdminUser,
    db: DbSession,
):
    created = await IdentityService(db).create_user(
        user,
        username=data.username,
        email=data.email,
        password=data.password,
        role=data.role,
        region=data.region,
        skills=data.skills,
        ip_address=get_client_ip(request),
    )
    return UserResponse.model_validate(created)


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    user: AdminUser,
    db: DbSession,
):
    return UserResponse.model_validate(await IdentityService(db).require_user(user_id))


@router.put("/users/{user_id}", response_model=UserResponse)
async def update_user(
    request: Request,
    user_id: uuid.UUID,
    data: AdminUserUpdate,
    user: AdminUser,
    db: DbSession,
):
    """Update profile fields; only the provided fields change."""
    updated = await IdentityService(db).update_user(
        user,
        user_id,
        data.model_dump(exclude_unset=True, exclude_none=True),
        ip_address=get_client_ip(request),
    )
    return UserResponse.model_validate(updated)


@router.put("/users/{user_id}/role", response_model=UserResponse)
async def change_user_role(
    request: Request,
    user_id: uuid.UUID,
    data: RoleUpdate,
    user: AdminUser,
    db: DbSession,
):
    updated = await IdentityService(db).change_role(
        user, user_id, data.role, ip_address=get_client_ip(request)
    )
    return UserResponse.model_validate(updated)


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    request: Request,
    user_id: uuid.UUID,
    user: AdminUser,
    db: DbSession,
):
    """
    Delete (deactivate) an account.

    The account keeps its history but can no longer sign in.
    """
    await IdentityService(db).delete_user(user, user_id, ip_address=get_client_ip(request))
    return MessageResponse(message="User deleted successfully")


@router.get("/stats", response_model=AdminStatsResponse)
async def get_system_stats(user: AdminTierUser, db: DbSession):
    return AdminStatsResponse.model_validate(
        await DashboardService(db).admin_stats(), from_attributes=True
    )
