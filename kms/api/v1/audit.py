"""
Audit log endpoints.
"""

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Query, Request, status

from kms.api.deps import AdminTierUser, AdminUser, DbSession, get_client_ip
from kms.kernel.audit import AuditLogger, pagination
from kms.schemas.audit import (
    AuditLogCreate,
    AuditLogResponse,
    AuditSummaryResponse,
    ContentLogsResponse,
    ItemReference,
    ItemTrailResponse,
)

router = APIRouter()


@router.get("/content", response_model=ContentLogsResponse)
async def list_content_logs(
    user: AdminTierUser,
    db: DbSession,
    content_id: Optional[uuid.UUID] = None,
    action: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
):
    """Entries about knowledge items, newest first."""
    logs, total = await AuditLogger(db).list_content_logs(
        content_id=content_id,
        action=action,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    return ContentLogsResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        pagination=pagination(page, limit, total),
    )


@router.get("/content/{item_id}", response_model=ItemTrailResponse)
async def get_item_trail(
    item_id: uuid.UUID,
    user: AdminTierUser,
    db: DbSession,
):
    item, logs = await AuditLogger(db).get_item_trail(item_id)
    return ItemTrailResponse(
        item=ItemReference.model_validate(item),
        audit_trail=[AuditLogResponse.model_validate(log) for log in logs],
    )


@router.get("/summary", response_model=AuditSummaryResponse)
async def get_audit_summary(
    user: AdminTierUser,
    db: DbSession,
    period: str = Query("7d", description="1d, 7d or 30d"),
):
    return AuditSummaryResponse.model_validate(
        await AuditLogger(db).summary(period), from_attributes=True
    )


@router.post("", response_model=AuditLogResponse, status_code=status.HTTP_201_CREATED)
async def create_audit_log(
    request: Request,
    data: AuditLogCreate,
    user: AdminUser,
    db: DbSession,
):
    """Write a manual audit entry."""
    entry = await AuditLogger(db).create_entry(
        action=data.action,
        actor=user,
        target_id=data.target_id,
        target_model=data.target_model,
        details=data.details,
        ip_address=get_client_ip(request),
    )
    return AuditLogResponse.model_validate(entry)
