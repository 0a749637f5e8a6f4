"""
Audit logger: append-only action log plus its read queries.

Writing an audit entry must never fail the operation being audited. Each
entry is flushed inside a SAVEPOINT; a database error rolls back only
that savepoint and is reported to the operator log.
"""

import math
import uuid
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from kms.kernel.audit.actions import CRITICAL_ACTIONS
from kms.kernel.errors import NotFoundError, ValidationError
from kms.kernel.models.audit_log import AuditLog, TargetModel
from kms.kernel.models.base import utcnow
from kms.kernel.models.knowledge import KnowledgeItem
from kms.kernel.models.user import User
from kms.logging_config import get_logger

logger = get_logger(__name__)

SUMMARY_PERIODS = {"1d": 1, "7d": 7, "30d": 30}
TOP_ACTORS_LIMIT = 5
RECENT_CRITICAL_LIMIT = 10


def _serialize(value: Any) -> Any:
    """Make a details payload JSON-safe."""
    if isinstance(value, dict):
        return {str(k): _serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_serialize(v) for v in value]
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


def pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    """Offset pagination block: {page, limit, total, pages}."""
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


class AuditLogger:
    """
    Service for the audit trail.

    Usage:
        audit = AuditLogger(session)
        await audit.record(
            action=AuditAction.KNOWLEDGE_UPLOAD,
            actor_id=user.id,
            target_id=item.id,
            target_model=TargetModel.KNOWLEDGE_ITEM,
            ip_address=ip,
        )
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(
        self,
        action: str,
        actor_id: Optional[uuid.UUID],
        target_id: Optional[uuid.UUID] = None,
        target_model: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
    ) -> Optional[AuditLog]:
        """
        Append an audit entry without ever raising.

        Args:
            action: Action name (see AuditAction)
            actor_id: User who performed the action
            target_id: Affected entity id
            target_model: Kind of affected entity (see TargetModel)
            details: Free-form JSON payload
            ip_address: Client IP

        Returns:
            The flushed AuditLog, or None if the write failed
        """
        entry = AuditLog(
            action=_serialize(action),
            actor_id=actor_id,
            target_id=target_id,
            target_model=_serialize(target_model),
            details=_serialize(details or {}),
            ip_address=ip_address,
        )
        # Pending business changes flush outside the savepoint so their errors propagate
        await self.session.flush()
        try:
            async with self.session.begin_nested():
                self.session.add(entry)
                await self.session.flush()
        except SQLAlchemyError:
            logger.exception(
                "Audit write failed",
                extra={"action": entry.action, "target_id": str(target_id) if target_id else None},
            )
            return None
        return entry

    async def create_entry(
        self,
        action: str,
        actor: User,
        target_id: Optional[uuid.UUID] = None,
        target_model: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
    ) -> AuditLog:
        """Manual entry (administrator). Unlike record(), failures propagate."""
        if not action or not action.strip():
            raise ValidationError("Action is required")
        entry = AuditLog(
            action=action.strip(),
            actor=actor,
            target_id=target_id,
            target_model=_serialize(target_model),
            details=_serialize(details or {}),
            ip_address=ip_address,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def list_content_logs(
        self,
        content_id: Optional[uuid.UUID] = None,
        action: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[AuditLog], int]:
        """
        Audit entries that target knowledge items, newest first.

        Args:
            content_id: Restrict to one item
            action: Case-insensitive substring of the action name
            start_date: Inclusive lower bound on timestamp
            end_date: Inclusive upper bound on timestamp
            page: 1-based page number
            limit: Page size

        Returns:
            Tuple of (entries on this page, total matching)
        """
        conditions = [AuditLog.target_model == TargetModel.KNOWLEDGE_ITEM.value]
        if content_id:
            conditions.append(AuditLog.target_id == content_id)
        if action:
            conditions.append(AuditLog.action.icontains(action, autoescape=True))
        if start_date:
            conditions.append(AuditLog.timestamp >= start_date)
        if end_date:
            conditions.append(AuditLog.timestamp <= end_date)

        total = await self.session.scalar(
            select(func.count()).select_from(AuditLog).where(and_(*conditions))
        )
        query = (
            select(AuditLog)
            .where(and_(*conditions))
            .order_by(AuditLog.timestamp.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all()), total or 0

    async def get_item_trail(self, item_id: uuid.UUID) -> Tuple[KnowledgeItem, List[AuditLog]]:
        """Full audit trail for one knowledge item, newest first."""
        item = await self.session.get(KnowledgeItem, item_id)
        if not item:
            raise NotFoundError("Knowledge item not found")

        query = (
            select(AuditLog)
            .where(
                and_(
                    AuditLog.target_id == item_id,
                    AuditLog.target_model == TargetModel.KNOWLEDGE_ITEM.value,
                )
            )
            .order_by(AuditLog.timestamp.desc())
        )
        result = await self.session.execute(query)
        return item, list(result.scalars().all())

    async def summary(self, period: str = "7d") -> Dict[str, Any]:
        """
        Activity summary over the last 1, 7 or 30 days.

        Returns:
            Dict with total_actions, actions_by_type, top_actors and
            recent_critical_actions
        """
        if period not in SUMMARY_PERIODS:
            raise ValidationError("Invalid period. Use one of: 1d, 7d, 30d")
        since = utcnow() - timedelta(days=SUMMARY_PERIODS[period])
        in_window = AuditLog.timestamp >= since

        total = await self.session.scalar(
            select(func.count()).select_from(AuditLog).where(in_window)
        )

        count_col = func.count().label("count")
        by_type = await self.session.execute(
            select(AuditLog.action, count_col)
            .where(in_window)
            .group_by(AuditLog.action)
            .order_by(count_col.desc(), AuditLog.action)
        )

        actor_count = func.count(AuditLog.id).label("count")
        top_actors = await self.session.execute(
            select(User, actor_count)
            .join(AuditLog, AuditLog.actor_id == User.id)
            .where(in_window)
            .group_by(User.id)
            .order_by(actor_count.desc(), User.id)
            .limit(TOP_ACTORS_LIMIT)
        )

        critical = await self.session.execute(
            select(AuditLog)
            .where(and_(in_window, AuditLog.action.in_(CRITICAL_ACTIONS)))
            .order_by(AuditLog.timestamp.desc())
            .limit(RECENT_CRITICAL_LIMIT)
        )

        return {
            "period": period,
            "total_actions": total or 0,
            "actions_by_type": [
                {"action": action, "count": count} for action, count in by_type.all()
            ],
            "top_actors": [
                {"user": user, "action_count": count} for user, count in top_actors.all()
            ],
            "recent_critical_actions": list(critical.scalars().all()),
        }

    async def recent(self, limit: int = 20) -> List[AuditLog]:
        """Most recent entries across all targets."""
        result = await self.session.execute(
            select(AuditLog).order_by(AuditLog.timestamp.desc()).limit(limit)
        )
        return list(result.scalars().all())
