"""
Admin console and dashboard schemas.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel

from kms.schemas.audit import AuditLogResponse
from kms.schemas.knowledge import KnowledgeBrief


class UserCounts(BaseModel):
    total: int
    by_role: Dict[str, int]


class KnowledgeCounts(BaseModel):
    total: int
    approved: int
    rejected: int
    pending: int


class ValidationCounts(BaseModel):
    pending: int


class AdminStatsResponse(BaseModel):
    users: UserCounts
    knowledge: KnowledgeCounts
    validations: ValidationCounts
    recent_activity: List[AuditLogResponse]


class DashboardStatsResponse(BaseModel):
    """Role-dependent figures; fields not relevant to the caller are null."""

    total_knowledge: int
    recent_uploads: List[KnowledgeBrief]
    my_uploads: Optional[int] = None
    my_pending: Optional[int] = None
    total_views: Optional[int] = None
    pending_approvals: Optional[int] = None
    flagged_items: Optional[int] = None
    approved_this_week: Optional[int] = None
    total_users: Optional[int] = None
    system_health: Optional[str] = None


class ManagerStatsResponse(BaseModel):
    team_members: int
    active_contributors: int
    total_uploads: int
    skill_gaps: List[str]
    promotion_pipeline: Dict[str, int]


class GovernanceLogsResponse(BaseModel):
    logs: List[AuditLogResponse]
