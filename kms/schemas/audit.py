"""
Audit log schemas.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from kms.schemas.auth import UserSummary
from kms.schemas.common import Pagination


class AuditLogResponse(BaseModel):
    id: uuid.UUID
    action: str
    actor: Optional[UserSummary] = None
    target_id: Optional[uuid.UUID] = None
    target_model: Optional[str] = None
    details: Dict[str, Any] = {}
    ip_address: Optional[str] = None
    timestamp: datetime

    class Config:
        from_attributes = True


class AuditLogCreate(BaseModel):
    """Manual audit entry (administrator)."""

    action: str = Field(..., max_length=100)
    target_id: Optional[uuid.UUID] = None
    target_model: Optional[str] = None
    details: Dict[str, Any] = {}


class ContentLogsResponse(BaseModel):
    logs: List[AuditLogResponse]
    pagination: Pagination


class ItemReference(BaseModel):
    id: uuid.UUID
    title: str

    class Config:
        from_attributes = True


class ItemTrailResponse(BaseModel):
    item: ItemReference
    audit_trail: List[AuditLogResponse]


class ActionCount(BaseModel):
    action: str
    count: int


class ActorCount(BaseModel):
    user: UserSummary
    action_count: int


class AuditSummaryResponse(BaseModel):
    period: str
    total_actions: int
    actions_by_type: List[ActionCount]
    top_actors: List[ActorCount]
    recent_critical_actions: List[AuditLogResponse]
