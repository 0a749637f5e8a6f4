"""
Validation workflow engine.

One workflow per knowledge item. Every state change appends exactly one
history entry; decisions are mirrored onto the item (status + approval
record) and scored on the leaderboard in the caller's transaction.
"""

import uuid
from datetime import timedelta
from typing import List, Optional

from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from kms.engines.config.configuration_service import (
    AUTO_ASSIGN,
    MAX_PENDING_DAYS,
    ConfigurationService,
)
from kms.engines.leaderboard.scorer import LeaderboardService
from kms.kernel.audit import AuditAction, AuditLogger
from kms.kernel.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from kms.kernel.models.audit_log import TargetModel
from kms.kernel.models.base import utcnow
from kms.kernel.models.knowledge import ApprovalDecision, KnowledgeApproval, KnowledgeItem, KnowledgeStatus
from kms.kernel.models.user import User, UserRole
from kms.kernel.models.validation import (
    OPEN_STATUSES,
    TERMINAL_STATUSES,
    ReviewAction,
    ValidationHistoryEntry,
    ValidationPriority,
    ValidationStatus,
    ValidationWorkflow,
)
from kms.kernel.permissions import is_admin_tier
from kms.logging_config import get_logger

logger = get_logger(__name__)

# Statuses a reviewer may move a workflow to
UPDATE_STATUSES = (
    ValidationStatus.IN_REVIEW.value,
    ValidationStatus.APPROVED.value,
    ValidationStatus.REJECTED.value,
    ValidationStatus.REVISION_REQUESTED.value,
)

VALIDATION_TO_ITEM_STATUS = {
    ValidationStatus.APPROVED.value: KnowledgeStatus.APPROVED.value,
    ValidationStatus.REJECTED.value: KnowledgeStatus.REJECTED.value,
    ValidationStatus.REVISION_REQUESTED.value: KnowledgeStatus.REVISION.value,
}

ITEM_TO_VALIDATION_STATUS = {item: wf for wf, item in VALIDATION_TO_ITEM_STATUS.items()}

APPROVAL_DECISIONS = {
    ValidationStatus.APPROVED.value: ApprovalDecision.APPROVED.value,
    ValidationStatus.REJECTED.value: ApprovalDecision.REJECTED.value,
    ValidationStatus.REVISION_REQUESTED.value: ApprovalDecision.REQUEST_CHANGES.value,
}

PRIORITY_ORDER = case(
    (ValidationWorkflow.priority == ValidationPriority.CRITICAL.value, 0),
    (ValidationWorkflow.priority == ValidationPriority.HIGH.value, 1),
    (ValidationWorkflow.priority == ValidationPriority.MEDIUM.value, 2),
    (ValidationWorkflow.priority == ValidationPriority.LOW.value, 3),
    else_=4,
)


def mirror_onto_item(
    item: KnowledgeItem,
    validation_status: str,
    reviewer_id: uuid.UUID,
    comment: Optional[str] = None,
) -> None:
    """
    Reflect a workflow decision on its item.

    InReview leaves the item untouched; every other decision sets the
    item status and appends one approval record.
    """
    item_status = VALIDATION_TO_ITEM_STATUS.get(validation_status)
    if item_status is None:
        return
    item.status = item_status
    item.approvals.append(
        KnowledgeApproval(
            approver_id=reviewer_id,
            status=APPROVAL_DECISIONS[validation_status],
            comment=comment,
        )
    )


def append_history(
    workflow: ValidationWorkflow,
    action: str,
    reviewer_id: Optional[uuid.UUID],
    comment: Optional[str] = None,
) -> ValidationHistoryEntry:
    entry = ValidationHistoryEntry(
        sequence=len(workflow.history) + 1,
        reviewer_id=reviewer_id,
        action=action,
        comment=comment,
    )
    workflow.history.append(entry)
    return entry


class ValidationWorkflowService:
    """
    Create, list, decide and reassign validation workflows.

    Usage:
        service = ValidationWorkflowService(session, config_service)
        workflow = await service.create_validation(item.id, actor=user)
    """

    def __init__(self, session: AsyncSession, config: ConfigurationService):
        self.session = session
        self.config = config
        self.audit = AuditLogger(session)
        self.leaderboard = LeaderboardService(session)

    async def select_reviewer(self) -> Optional[User]:
        """
        Least-loaded active Knowledge Champion.

        Load is the number of open (Pending/InReview) workflows assigned to
        the reviewer; ties go to the lowest user id.
        """
        open_counts = (
            select(
                ValidationWorkflow.assigned_reviewer_id.label("reviewer_id"),
                func.count().label("open_count"),
            )
            .where(
                ValidationWorkflow.status.in_(OPEN_STATUSES),
                ValidationWorkflow.assigned_reviewer_id.is_not(None),
            )
            .group_by(ValidationWorkflow.assigned_reviewer_id)
            .subquery()
        )
        query = (
            select(User)
            .outerjoin(open_counts, open_counts.c.reviewer_id == User.id)
            .where(
                User.role == UserRole.KNOWLEDGE_CHAMPION.value,
                User.is_active.is_(True),
            )
            .order_by(func.coalesce(open_counts.c.open_count, 0), User.id)
            .limit(1)
        )
        return await self.session.scalar(query)

    async def create_validation(
        self,
        item_id: uuid.UUID,
        actor: User,
        reviewer_id: Optional[uuid.UUID] = None,
        priority: str = ValidationPriority.MEDIUM.value,
        ip_address: Optional[str] = None,
        item: Optional[KnowledgeItem] = None,
    ) -> ValidationWorkflow:
        """
        Open the validation workflow for an item.

        Raises:
            NotFoundError: Item or explicit reviewer does not exist
            ConflictError: The item already has a workflow
        """
        if item is None:
            item = await self.session.get(KnowledgeItem, item_id)
        if item is None:
            raise NotFoundError("Knowledge item not found")

        if priority not in {p.value for p in ValidationPriority}:
            raise ValidationError("Invalid priority")

        existing = await self.session.scalar(
            select(ValidationWorkflow.id).where(ValidationWorkflow.knowledge_item_id == item.id)
        )
        if existing is not None:
            raise ConflictError("Validation already exists for this item")

        reviewer: Optional[User] = None
        if reviewer_id is not None:
            reviewer = await self.session.get(User, reviewer_id)
            if reviewer is None:
                raise NotFoundError("Reviewer not found")
        elif self.config.get(AUTO_ASSIGN, True):
            reviewer = await self.select_reviewer()

        max_days = int(self.config.get(MAX_PENDING_DAYS, 7))
        workflow = ValidationWorkflow(
            knowledge_item=item,
            assigned_reviewer=reviewer,
            status=ValidationStatus.PENDING.value,
            priority=priority,
            due_date=utcnow() + timedelta(days=max_days),
            history=[],
        )
        append_history(
            workflow,
            ReviewAction.ASSIGNED.value,
            reviewer.id if reviewer else None,
            "Auto-assigned" if reviewer and reviewer_id is None else None,
        )

        # The unique constraint catches a concurrent insert the check above missed
        await self.session.flush()
        try:
            async with self.session.begin_nested():
                self.session.add(workflow)
                await self.session.flush()
        except IntegrityError:
            raise ConflictError("Validation already exists for this item")

        logger.info(
            "Validation created",
            extra={
                "validation_id": str(workflow.id),
                "item_id": str(item.id),
                "reviewer_id": str(reviewer.id) if reviewer else None,
            },
        )
        await self.audit.record(
            action=AuditAction.VALIDATION_CREATED,
            actor_id=actor.id,
            target_id=workflow.id,
            target_model=TargetModel.VALIDATION,
            details={
                "knowledge_item_id": item.id,
                "assigned_reviewer": reviewer.id if reviewer else None,
                "priority": priority,
            },
            ip_address=ip_address,
        )
        return workflow

    async def list_validations(
        self,
        actor: User,
        status: Optional[str] = None,
        assigned_to_me: bool = False,
    ) -> List[ValidationWorkflow]:
        """Workflows visible to the actor, Critical first then oldest first."""
        query = select(ValidationWorkflow)
        if status:
            query = query.where(ValidationWorkflow.status == status)
        elif not is_admin_tier(actor.role):
            query = query.where(ValidationWorkflow.status.in_(OPEN_STATUSES))
        if assigned_to_me:
            query = query.where(ValidationWorkflow.assigned_reviewer_id == actor.id)

        query = query.order_by(PRIORITY_ORDER, ValidationWorkflow.created_at)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_validation(self, validation_id: uuid.UUID) -> ValidationWorkflow:
        workflow = await self.session.get(ValidationWorkflow, validation_id)
        if workflow is None:
            raise NotFoundError("Validation not found")
        return workflow

    async def get_for_item(self, item_id: uuid.UUID) -> Optional[ValidationWorkflow]:
        return await self.session.scalar(
            select(ValidationWorkflow).where(ValidationWorkflow.knowledge_item_id == item_id)
        )

    async def _score_decision(self, status: str, reviewer_id: uuid.UUID, author_id: uuid.UUID) -> None:
        if status in TERMINAL_STATUSES:
            await self.leaderboard.increment_score(reviewer_id, "validations")
        if status == ValidationStatus.APPROVED.value:
            await self.leaderboard.increment_score(author_id, "approvals")

    def _set_status(self, workflow: ValidationWorkflow, status: str) -> None:
        workflow.status = status
        workflow.completed_at = utcnow() if status in TERMINAL_STATUSES else None

    async def update_validation(
        self,
        validation_id: uuid.UUID,
        actor: User,
        status: str,
        review_notes: Optional[str] = None,
        revision_comments: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> ValidationWorkflow:
        """
        Record a review decision.

        Raises:
            NotFoundError: Unknown validation
            AuthorizationError: Actor is not the assigned reviewer, a
                Knowledge Champion or admin-tier
            ValidationError: Status is not a reviewable status
        """
        workflow = await self.get_validation(validation_id)

        allowed = (
            workflow.assigned_reviewer_id == actor.id
            or actor.role == UserRole.KNOWLEDGE_CHAMPION.value
            or is_admin_tier(actor.role)
        )
        if not allowed:
            raise AuthorizationError("Not authorized to update this validation")

        if status not in UPDATE_STATUSES:
            raise ValidationError(
                f"Invalid status. Use one of: {', '.join(UPDATE_STATUSES)}"
            )

        previous_status = workflow.status
        self._set_status(workflow, status)
        if review_notes is not None:
            workflow.review_notes = review_notes
        if revision_comments is not None:
            workflow.revision_comments = revision_comments

        comment = revision_comments or review_notes
        append_history(workflow, status, actor.id, comment)

        item = workflow.knowledge_item
        mirror_onto_item(item, status, actor.id, comment)
        await self._score_decision(status, actor.id, item.author_id)

        await self.audit.record(
            action=AuditAction.for_validation(status),
            actor_id=actor.id,
            target_id=workflow.id,
            target_model=TargetModel.VALIDATION,
            details={
                "knowledge_item_id": item.id,
                "previous_status": previous_status,
                "new_status": status,
                "review_notes": review_notes,
            },
            ip_address=ip_address,
        )
        logger.info(
            "Validation updated",
            extra={"validation_id": str(workflow.id), "status": status},
        )
        return workflow

    async def reassign(
        self,
        validation_id: uuid.UUID,
        new_reviewer_id: uuid.UUID,
        actor: User,
        ip_address: Optional[str] = None,
    ) -> ValidationWorkflow:
        """Hand a workflow to another reviewer and reopen it."""
        workflow = await self.get_validation(validation_id)
        new_reviewer = await self.session.get(User, new_reviewer_id)
        if new_reviewer is None:
            raise NotFoundError("Reviewer not found")

        previous = workflow.assigned_reviewer
        previous_name = previous.username if previous else "unassigned"

        workflow.assigned_reviewer = new_reviewer
        self._set_status(workflow, ValidationStatus.PENDING.value)
        append_history(
            workflow,
            ReviewAction.REASSIGNED.value,
            actor.id,
            f"Reassigned from {previous_name} to {new_reviewer.username}",
        )

        await self.audit.record(
            action=AuditAction.VALIDATION_REASSIGNED,
            actor_id=actor.id,
            target_id=workflow.id,
            target_model=TargetModel.VALIDATION,
            details={
                "previous_reviewer": previous.id if previous else None,
                "new_reviewer": new_reviewer.id,
            },
            ip_address=ip_address,
        )
        return workflow

    async def apply_direct_review(
        self,
        item: KnowledgeItem,
        item_status: str,
        actor: User,
        comment: Optional[str] = None,
    ) -> ValidationWorkflow:
        """
        Keep the workflow in step with a decision made on the item itself.

        Creates the workflow (holding just this decision) if the item has
        none. The item is updated and the decision scored exactly as a
        workflow decision would be.
        """
        status = ITEM_TO_VALIDATION_STATUS[item_status]
        workflow = await self.get_for_item(item.id)
        if workflow is None:
            workflow = ValidationWorkflow(
                knowledge_item=item,
                assigned_reviewer=actor,
                priority=ValidationPriority.MEDIUM.value,
                history=[],
            )
            self.session.add(workflow)

        self._set_status(workflow, status)
        if status == ValidationStatus.REVISION_REQUESTED.value:
            workflow.revision_comments = comment
        else:
            workflow.review_notes = comment
        append_history(workflow, status, actor.id, comment)

        mirror_onto_item(item, status, actor.id, comment)
        await self._score_decision(status, actor.id, item.author_id)
        await self.session.flush()
        return workflow

    async def reopen_for_item(
        self,
        item: KnowledgeItem,
        actor: User,
        comment: str,
        ip_address: Optional[str] = None,
    ) -> ValidationWorkflow:
        """Send an edited item back to review (creating its workflow if absent)."""
        workflow = await self.get_for_item(item.id)
        if workflow is None:
            return await self.create_validation(
                item.id, actor=actor, ip_address=ip_address, item=item
            )

        self._set_status(workflow, ValidationStatus.PENDING.value)
        append_history(
            workflow,
            ReviewAction.ASSIGNED.value,
            workflow.assigned_reviewer_id,
            comment,
        )
        await self.session.flush()
        return workflow
