"""
Knowledge item lifecycle: upload, browse, edit, review, quality, archive.
"""

import uuid
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from kms.engines.config.configuration_service import (
    FORBIDDEN_KEYWORDS,
    SIMILARITY_THRESHOLD,
    ConfigurationService,
)
from kms.engines.leaderboard.scorer import LeaderboardService
from kms.engines.validation.content_validator import ContentValidator
from kms.engines.validation.duplicate_detector import DuplicateDetector
from kms.engines.validation.workflow_service import ValidationWorkflowService
from kms.kernel.audit import AuditAction, AuditLogger
from kms.kernel.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from kms.kernel.models.audit_log import TargetModel
from kms.kernel.models.knowledge import KnowledgeItem, KnowledgeStatus
from kms.kernel.models.user import User, UserRole
from kms.kernel.permissions import is_reviewer
from kms.logging_config import get_logger

logger = get_logger(__name__)

DECISION_STATUSES = (
    KnowledgeStatus.APPROVED.value,
    KnowledgeStatus.REJECTED.value,
    KnowledgeStatus.REVISION.value,
)

EDITABLE_FIELDS = ("title", "description", "category", "tags", "region", "content_url")


class KnowledgeService:
    """
    Service for knowledge items.

    Usage:
        service = KnowledgeService(session, config_service)
        item = await service.upload(user, title=..., description=..., category=...)
    """

    def __init__(self, session: AsyncSession, config: ConfigurationService):
        self.session = session
        self.config = config
        self.audit = AuditLogger(session)
        self.leaderboard = LeaderboardService(session)
        self.workflows = ValidationWorkflowService(session, config)

    async def require_item(self, item_id: uuid.UUID) -> KnowledgeItem:
        item = await self.session.get(KnowledgeItem, item_id)
        if item is None:
            raise NotFoundError("Knowledge item not found")
        return item

    async def upload(
        self,
        actor: User,
        title: Optional[str],
        description: Optional[str],
        category: Optional[str],
        tags: Optional[List[str]] = None,
        region: Optional[str] = None,
        content_url: Optional[str] = None,
        attachments: Optional[List[Dict[str, Any]]] = None,
        ip_address: Optional[str] = None,
    ) -> KnowledgeItem:
        """
        Validate and store a new item, then open its review workflow.

        Raises:
            ValidationError: Missing content or metadata
            AuthorizationError: Governance policy violation
            ConflictError: Near-duplicate of existing content
        """
        content = ContentValidator.validate_content(title, description)
        if not content.is_valid:
            raise ValidationError("Content validation failed", errors=content.errors)

        tags = [tag.strip() for tag in (tags or []) if tag and tag.strip()]
        if not tags:
            tags = ContentValidator.extract_keywords(description)

        metadata = ContentValidator.validate_metadata(
            {"category": category, "tags": tags, "author": actor.id}
        )
        if not metadata.is_valid:
            raise ValidationError("Metadata validation failed", errors=metadata.errors)

        policy = ContentValidator.check_policy(title, self.config.get(FORBIDDEN_KEYWORDS, []))
        if not policy.compliant:
            logger.warning(
                "Upload rejected by policy",
                extra={"actor_id": str(actor.id), "violations": policy.violations},
            )
            raise AuthorizationError("Policy violation", violations=policy.violations)

        threshold = float(self.config.get(SIMILARITY_THRESHOLD, 0.8))
        similarity = await DuplicateDetector(self.session).check(description, threshold)
        if similarity.is_duplicate:
            raise ConflictError(
                "Duplicate content detected",
                similarity_score=round(similarity.score, 4),
                similar_items=[
                    {"id": str(similar.id), "title": similar.title, "score": similar.score}
                    for similar in similarity.similar_items
                ],
            )

        item = KnowledgeItem(
            title=title.strip(),
            description=description.strip(),
            category=category.strip(),
            tags=tags,
            region=region or actor.region,
            content_url=content_url,
            author=actor,
            status=KnowledgeStatus.PENDING.value,
            attachments=list(attachments or []),
            keywords=list(tags),
            duplicate_score=round(similarity.score, 4),
            approvals=[],
        )
        self.session.add(item)
        await self.session.flush()

        await self.workflows.create_validation(
            item.id, actor=actor, ip_address=ip_address, item=item
        )
        await self.leaderboard.increment_score(actor.id, "uploads")
        await self.audit.record(
            action=AuditAction.KNOWLEDGE_UPLOAD,
            actor_id=actor.id,
            target_id=item.id,
            target_model=TargetModel.KNOWLEDGE_ITEM,
            details={"title": item.title, "category": item.category},
            ip_address=ip_address,
        )
        logger.info("Knowledge uploaded", extra={"item_id": str(item.id)})
        return item

    async def list_items(
        self,
        actor: User,
        search: Optional[str] = None,
        category: Optional[str] = None,
        author: Optional[uuid.UUID] = None,
        flagged: Optional[bool] = None,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[KnowledgeItem], int]:
        """
        Items visible to the actor, newest first.

        Consultants see Approved items and their own; reviewer roles see
        every status unless one is requested; everyone else sees Approved.
        """
        conditions = []
        if actor.role == UserRole.CONSULTANT.value:
            visible = or_(
                KnowledgeItem.status == KnowledgeStatus.APPROVED.value,
                KnowledgeItem.author_id == actor.id,
            )
            conditions.append(visible)
            if status:
                conditions.append(KnowledgeItem.status == status)
        elif is_reviewer(actor.role):
            if status:
                conditions.append(KnowledgeItem.status == status)
        else:
            conditions.append(KnowledgeItem.status == KnowledgeStatus.APPROVED.value)

        if search:
            conditions.append(
                or_(
                    KnowledgeItem.title.icontains(search, autoescape=True),
                    KnowledgeItem.description.icontains(search, autoescape=True),
                )
            )
        if category:
            conditions.append(KnowledgeItem.category == category)
        if author:
            conditions.append(KnowledgeItem.author_id == author)
        if flagged is not None:
            conditions.append(KnowledgeItem.quality_flag.is_(flagged))

        where = and_(*conditions) if conditions else None
        count_query = select(func.count()).select_from(KnowledgeItem)
        query = select(KnowledgeItem)
        if where is not None:
            count_query = count_query.where(where)
            query = query.where(where)

        total = await self.session.scalar(count_query)
        query = (
            query.order_by(KnowledgeItem.created_at.desc(), KnowledgeItem.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all()), total or 0

    async def record_view(self, item: KnowledgeItem, viewer: User) -> None:
        """
        Count one view on the item and on its author's leaderboard entry.

        Authors reading their own item are not credited on the leaderboard.
        """
        await self.session.execute(
            update(KnowledgeItem)
            .where(KnowledgeItem.id == item.id)
            .values(views=KnowledgeItem.views + 1)
            .execution_options(synchronize_session=False)
        )
        await self.session.refresh(item)
        if viewer.id != item.author_id:
            await self.leaderboard.increment_score(item.author_id, "views")

    async def get_item(self, item_id: uuid.UUID, viewer: User) -> KnowledgeItem:
        item = await self.require_item(item_id)
        await self.record_view(item, viewer)
        return item

    async def update_item(
        self,
        item_id: uuid.UUID,
        actor: User,
        changes: Dict[str, Any],
        existing_attachments: Optional[List[Dict[str, Any]]] = None,
        new_attachments: Optional[List[Dict[str, Any]]] = None,
        clear_attachments: bool = False,
        ip_address: Optional[str] = None,
    ) -> KnowledgeItem:
        """
        Author edit. Bumps the version; any item that is not Pending goes back to review.

        Raises:
            NotFoundError: Unknown item
            AuthorizationError: Actor is not the author
            ValidationError: Edit leaves title or description blank
        """
        item = await self.require_item(item_id)
        if item.author_id != actor.id:
            raise AuthorizationError("Not authorized. Only the author can edit this item.")

        for field in EDITABLE_FIELDS:
            value = changes.get(field)
            if value is not None:
                setattr(item, field, list(value) if field == "tags" else value)

        content = ContentValidator.validate_content(item.title, item.description)
        if not content.is_valid:
            raise ValidationError("Content validation failed", errors=content.errors)

        existing_attachments = existing_attachments or []
        new_attachments = new_attachments or []
        if existing_attachments or new_attachments or clear_attachments:
            item.attachments = [*existing_attachments, *new_attachments]

        previous_status = item.status
        item.version = item.version + 1

        if previous_status != KnowledgeStatus.PENDING.value:
            item.status = KnowledgeStatus.PENDING.value
            await self.workflows.reopen_for_item(
                item,
                actor,
                f"Content updated (v{item.version}) - requires re-review",
                ip_address=ip_address,
            )

        await self.session.flush()
        await self.audit.record(
            action=AuditAction.KNOWLEDGE_UPDATED,
            actor_id=actor.id,
            target_id=item.id,
            target_model=TargetModel.KNOWLEDGE_ITEM,
            details={
                "version": item.version,
                "previous_status": previous_status,
                "new_status": item.status,
            },
            ip_address=ip_address,
        )
        return item

    async def review(
        self,
        item_id: uuid.UUID,
        actor: User,
        status: str,
        comment: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> KnowledgeItem:
        """Direct review decision on an item; the workflow is kept in step."""
        if status not in DECISION_STATUSES:
            raise ValidationError(f"Invalid status. Use one of: {', '.join(DECISION_STATUSES)}")

        item = await self.require_item(item_id)
        await self.workflows.apply_direct_review(item, status, actor, comment)

        await self.audit.record(
            action=AuditAction.for_knowledge(status),
            actor_id=actor.id,
            target_id=item.id,
            target_model=TargetModel.KNOWLEDGE_ITEM,
            details={"status": status, "comment": comment},
            ip_address=ip_address,
        )
        return item

    async def update_quality(
        self,
        item_id: uuid.UUID,
        actor: User,
        mark_safe: bool = False,
        quality_flag: Optional[bool] = None,
        quality_score: Optional[int] = None,
        quality_issues: Optional[List[str]] = None,
        ip_address: Optional[str] = None,
    ) -> KnowledgeItem:
        item = await self.require_item(item_id)
        if mark_safe:
            item.quality_flag = False
            item.quality_score = 100
            item.quality_issues = []
        else:
            if quality_flag is not None:
                item.quality_flag = quality_flag
            if quality_score is not None:
                item.quality_score = quality_score
            if quality_issues is not None:
                item.quality_issues = list(quality_issues)

        await self.session.flush()
        await self.audit.record(
            action=AuditAction.QUALITY_UPDATE,
            actor_id=actor.id,
            target_id=item.id,
            target_model=TargetModel.KNOWLEDGE_ITEM,
            details={
                "mark_safe": mark_safe,
                "quality_flag": item.quality_flag,
                "quality_score": item.quality_score,
            },
            ip_address=ip_address,
        )
        return item

    async def archive(
        self,
        item_id: uuid.UUID,
        actor: User,
        ip_address: Optional[str] = None,
    ) -> KnowledgeItem:
        item = await self.require_item(item_id)
        item.status = KnowledgeStatus.ARCHIVED.value
        item.quality_flag = False

        await self.session.flush()
        await self.audit.record(
            action=AuditAction.KNOWLEDGE_ARCHIVED,
            actor_id=actor.id,
            target_id=item.id,
            target_model=TargetModel.KNOWLEDGE_ITEM,
            ip_address=ip_address,
        )
        return item
