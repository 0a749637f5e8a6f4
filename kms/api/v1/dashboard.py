"""
Dashboard endpoints.
"""

from fastapi import APIRouter

from kms.api.deps import AdminTierUser, CurrentUser, DbSession, ManagerUser
from kms.engines.insights import DashboardService
from kms.schemas.admin import (
    DashboardStatsResponse,
    GovernanceLogsResponse,
    ManagerStatsResponse,
)

router = APIRouter()


@router.get("/stats", response_model=DashboardStatsResponse)
async def get_dashboard_stats(user: CurrentUser, db: DbSession):
    """Figures for the caller's home screen; the set depends on the role."""
    return DashboardStatsResponse.model_validate(
        await DashboardService(db).stats_for(user), from_attributes=True
    )


@router.get("/manager", response_model=ManagerStatsResponse)
async def get_manager_stats(user: ManagerUser, db: DbSession):
    return ManagerStatsResponse.model_validate(await DashboardService(db).manager_stats())


@router.get("/governance", response_model=GovernanceLogsResponse)
async def get_governance_logs(user: AdminTierUser, db: DbSession):
    """Latest audit activity for the governance council."""
    logs = await DashboardService(db).governance_logs()
    return GovernanceLogsResponse.model_validate({"logs": logs}, from_attributes=True)
