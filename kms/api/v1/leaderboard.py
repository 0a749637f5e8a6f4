"""
Leaderboard endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Query, Request

from kms.api.deps import AdminUser, CurrentUser, DbSession, get_client_ip
from kms.engines.leaderboard import LeaderboardService
from kms.kernel.audit import AuditAction, AuditLogger
from kms.kernel.models.audit_log import TargetModel
from kms.schemas.leaderboard import LeaderboardRow, RecalculateResponse

router = APIRouter()


@router.get("", response_model=List[LeaderboardRow])
async def get_leaderboard(
    user: CurrentUser,
    db: DbSession,
    period: Optional[str] = Query(None, description="weekly, monthly or yearly"),
    limit: int = Query(10, ge=1, le=100),
):
    """
    Ranked contributors.

    Without a period, entries are ordered by total score; with one, by
    that period's total.
    """
    rows = await LeaderboardService(db).get_leaderboard(period=period, limit=limit)
    return [LeaderboardRow.from_entry(row["entry"], row["rank"], row["score"]) for row in rows]


@router.get("/me", response_model=LeaderboardRow)
async def get_my_stats(user: CurrentUser, db: DbSession):
    """Caller's entry, created on first read."""
    stats = await LeaderboardService(db).get_my_stats(user)
    entry = stats["entry"]
    return LeaderboardRow.from_entry(entry, stats["rank"], entry.total_score)


@router.get("/top/{category}", response_model=List[LeaderboardRow])
async def get_top_by_category(
    category: str,
    user: CurrentUser,
    db: DbSession,
    limit: int = Query(10, ge=1, le=100),
):
    rows = await LeaderboardService(db).get_top_by_category(category, limit=limit)
    return [LeaderboardRow.from_entry(row["entry"], row["rank"], row["score"]) for row in rows]


@router.post("/recalculate", response_model=RecalculateResponse)
async def recalculate_leaderboard(
    request: Request,
    user: AdminUser,
    db: DbSession,
):
    """Recompute totals and ranks from the counters."""
    count = await LeaderboardService(db).recalculate_all()
    await AuditLogger(db).record(
        action=AuditAction.LEADERBOARD_RECALCULATED,
        actor_id=user.id,
        target_model=TargetModel.LEADERBOARD,
        details={"entries": count},
        ip_address=get_client_ip(request),
    )
    return RecalculateResponse(message="Leaderboard recalculated", entries=count)
