"""
Read-only aggregates for dashboards and the admin console.
"""

from datetime import timedelta
from typing import Any, Dict, List

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from kms.kernel.audit import AuditLogger
from kms.kernel.models.base import utcnow
from kms.kernel.models.knowledge import KnowledgeItem, KnowledgeStatus
from kms.kernel.models.user import User, UserRole
from kms.kernel.models.validation import ValidationStatus, ValidationWorkflow

RECENT_UPLOADS_LIMIT = 5
RECENT_ACTIVITY_LIMIT = 10
GOVERNANCE_LOG_LIMIT = 20
ACTIVE_CONTRIBUTOR_DAYS = 30
MAX_SKILL_GAPS = 5

REVIEW_DASHBOARD_ROLES = (
    UserRole.KNOWLEDGE_CHAMPION.value,
    UserRole.ADMINISTRATOR.value,
)


class DashboardService:
    """
    Usage:
        service = DashboardService(session)
        stats = await service.stats_for(user)
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _count(self, model, *conditions) -> int:
        query = select(func.count()).select_from(model)
        if conditions:
            query = query.where(*conditions)
        return (await self.session.scalar(query)) or 0

    async def stats_for(self, user: User) -> Dict[str, Any]:
        """Dashboard figures; which ones are present depends on the role."""
        approved = KnowledgeItem.status == KnowledgeStatus.APPROVED.value
        recent = await self.session.execute(
            select(KnowledgeItem)
            .where(approved)
            .order_by(KnowledgeItem.created_at.desc())
            .limit(RECENT_UPLOADS_LIMIT)
        )
        stats: Dict[str, Any] = {
            "total_knowledge": await self._count(KnowledgeItem, approved),
            "recent_uploads": list(recent.scalars().all()),
        }

        if user.role == UserRole.CONSULTANT.value:
            mine = KnowledgeItem.author_id == user.id
            stats["my_uploads"] = await self._count(KnowledgeItem, mine)
            stats["my_pending"] = await self._count(
                KnowledgeItem, mine, KnowledgeItem.status == KnowledgeStatus.PENDING.value
            )
            total_views = await self.session.scalar(
                select(func.coalesce(func.sum(KnowledgeItem.views), 0)).where(mine)
            )
            stats["total_views"] = int(total_views or 0)

        if user.role in REVIEW_DASHBOARD_ROLES:
            week_ago = utcnow() - timedelta(days=7)
            stats["pending_approvals"] = await self._count(
                KnowledgeItem, KnowledgeItem.status == KnowledgeStatus.PENDING.value
            )
            stats["flagged_items"] = await self._count(
                KnowledgeItem,
                KnowledgeItem.status.in_(
                    (KnowledgeStatus.REVISION.value, KnowledgeStatus.REJECTED.value)
                ),
            )
            stats["approved_this_week"] = await self._count(
                KnowledgeItem, approved, KnowledgeItem.updated_at >= week_ago
            )

        if user.role == UserRole.ADMINISTRATOR.value:
            stats["total_users"] = await self._count(User)
            stats["system_health"] = await self._system_health()

        return stats

    async def _system_health(self) -> str:
        """'Healthy' unless validations are overdue."""
        overdue = await self._count(
            ValidationWorkflow,
            ValidationWorkflow.status == ValidationStatus.PENDING.value,
            ValidationWorkflow.due_date < utcnow(),
        )
        return "Healthy" if overdue == 0 else "Degraded"

    async def manager_stats(self) -> Dict[str, Any]:
        """Team composition and contribution figures for project managers."""
        since = utcnow() - timedelta(days=ACTIVE_CONTRIBUTOR_DAYS)
        team_members = await self._count(
            User,
            User.role == UserRole.CONSULTANT.value,
            User.is_active.is_(True),
        )
        active_contributors = await self.session.scalar(
            select(func.count(distinct(KnowledgeItem.author_id))).where(
                KnowledgeItem.created_at >= since
            )
        )
        promotion_rows = await self.session.execute(
            select(User.promotion_status, func.count())
            .where(User.role == UserRole.CONSULTANT.value)
            .group_by(User.promotion_status)
        )

        return {
            "team_members": team_members,
            "active_contributors": active_contributors or 0,
            "total_uploads": await self._count(KnowledgeItem),
            "skill_gaps": await self._skill_gaps(),
            "promotion_pipeline": {status: count for status, count in promotion_rows.all()},
        }

    async def _skill_gaps(self) -> List[str]:
        """Categories of approved content that no active user lists as a skill."""
        categories = await self.session.execute(
            select(KnowledgeItem.category, func.count().label("items"))
            .where(KnowledgeItem.status == KnowledgeStatus.APPROVED.value)
            .group_by(KnowledgeItem.category)
            .order_by(func.count().desc(), KnowledgeItem.category)
        )
        skill_lists = await self.session.execute(
            select(User.skills).where(User.is_active.is_(True))
        )
        known = {skill.lower() for skills in skill_lists.scalars().all() for skill in (skills or [])}
        gaps = [category for category, _ in categories.all() if category.lower() not in known]
        return gaps[:MAX_SKILL_GAPS]

    async def governance_logs(self):
        return await AuditLogger(self.session).recent(GOVERNANCE_LOG_LIMIT)

    async def admin_stats(self) -> Dict[str, Any]:
        """System-wide counts plus the latest audit activity."""
        by_role = await self.session.execute(
            select(User.role, func.count()).group_by(User.role)
        )
        return {
            "users": {
                "total": await self._count(User),
                "by_role": {role: count for role, count in by_role.all()},
            },
            "knowledge": {
                "total": await self._count(KnowledgeItem),
                "approved": await self._count(
                    KnowledgeItem, KnowledgeItem.status == KnowledgeStatus.APPROVED.value
                ),
                "rejected": await self._count(
                    KnowledgeItem, KnowledgeItem.status == KnowledgeStatus.REJECTED.value
                ),
                "pending": await self._count(
                    KnowledgeItem, KnowledgeItem.status == KnowledgeStatus.PENDING.value
                ),
            },
            "validations": {
                "pending": await self._count(
                    ValidationWorkflow,
                    ValidationWorkflow.status == ValidationStatus.PENDING.value,
                ),
            },
            "recent_activity": await AuditLogger(self.session).recent(RECENT_ACTIVITY_LIMIT),
        }
