"""
Legacy content migration.

A migration job carries its source records in ``connection_details``;
starting it imports them synchronously as Pending knowledge items that go
through the normal review workflow.
"""

import uuid
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from kms.engines.config.configuration_service import SIMILARITY_THRESHOLD, ConfigurationService
from kms.engines.validation.content_validator import ContentValidator
from kms.engines.validation.duplicate_detector import DuplicateDetector
from kms.engines.validation.workflow_service import ValidationWorkflowService
from kms.kernel.audit import AuditAction, AuditLogger
from kms.kernel.errors import NotFoundError, ValidationError
from kms.kernel.models.audit_log import TargetModel
from kms.kernel.models.base import utcnow
from kms.kernel.models.knowledge import KnowledgeItem, KnowledgeStatus
from kms.kernel.models.migration import CANCELLABLE_STATUSES, Migration, MigrationStatus
from kms.kernel.models.user import User
from kms.logging_config import get_logger

logger = get_logger(__name__)


def log_line(level: str, message: str) -> Dict[str, str]:
    return {"timestamp": utcnow().isoformat(), "level": level, "message": message}


class MigrationService:
    """
    Usage:
        service = MigrationService(session, config_service)
        migration = await service.create(actor, name="Wiki import", source_system="wiki", ...)
        await service.start(migration.id, actor)
    """

    def __init__(self, session: AsyncSession, config: ConfigurationService):
        self.session = session
        self.config = config
        self.audit = AuditLogger(session)
        self.workflows = ValidationWorkflowService(session, config)

    async def list_migrations(
        self,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Migration], int]:
        count_query = select(func.count()).select_from(Migration)
        query = select(Migration)
        if status:
            count_query = count_query.where(Migration.status == status)
            query = query.where(Migration.status == status)

        total = await self.session.scalar(count_query)
        result = await self.session.execute(
            query.order_by(Migration.created_at.desc()).offset((page - 1) * limit).limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def require_migration(self, migration_id: uuid.UUID) -> Migration:
        migration = await self.session.get(Migration, migration_id)
        if migration is None:
            raise NotFoundError("Migration not found")
        return migration

    async def create(
        self,
        actor: User,
        name: str,
        source_system: str,
        description: Optional[str] = None,
        target_system: str = "KMS",
        connection_details: Optional[Dict[str, Any]] = None,
        batch_size: int = 100,
        dry_run: bool = False,
        skip_duplicates: bool = True,
        ip_address: Optional[str] = None,
    ) -> Migration:
        migration = Migration(
            name=name,
            description=description,
            source_system=source_system,
            target_system=target_system,
            connection_details=dict(connection_details or {}),
            batch_size=batch_size,
            dry_run=dry_run,
            skip_duplicates=skip_duplicates,
            status=MigrationStatus.PENDING.value,
            initiated_by=actor.id,
            logs=[],
        )
        self.session.add(migration)
        await self.session.flush()

        await self.audit.record(
            action=AuditAction.MIGRATION_CREATED,
            actor_id=actor.id,
            target_id=migration.id,
            target_model=TargetModel.MIGRATION,
            details={"name": name, "source": source_system, "target": target_system},
            ip_address=ip_address,
        )
        return migration

    async def start(
        self,
        migration_id: uuid.UUID,
        actor: User,
        ip_address: Optional[str] = None,
    ) -> Migration:
        """
        Run the import.

        Raises:
            NotFoundError: Unknown migration
            ValidationError: Migration is not Pending
        """
        migration = await self.require_migration(migration_id)
        if migration.status != MigrationStatus.PENDING.value:
            raise ValidationError("Migration cannot be started")

        migration.status = MigrationStatus.IN_PROGRESS.value
        migration.started_at = utcnow()
        logs = [*migration.logs, log_line("info", "Migration started")]
        await self.session.flush()

        await self.audit.record(
            action=AuditAction.MIGRATION_STARTED,
            actor_id=actor.id,
            target_id=migration.id,
            target_model=TargetModel.MIGRATION,
            ip_address=ip_address,
        )

        records = (migration.connection_details or {}).get("records")
        if not isinstance(records, list):
            logs.append(log_line("error", "No records to import: connection_details.records must be a list"))
            self._finish(migration, MigrationStatus.FAILED.value, logs)
        else:
            author = await self.session.get(User, migration.initiated_by)
            await self._import_records(migration, records, author, logs)

        await self.session.flush()
        await self.audit.record(
            action=AuditAction.MIGRATION_COMPLETED,
            actor_id=actor.id,
            target_id=migration.id,
            target_model=TargetModel.MIGRATION,
            details={
                "status": migration.status,
                "total": migration.total,
                "processed": migration.processed,
                "failed": migration.failed,
                "dry_run": migration.dry_run,
            },
            ip_address=ip_address,
        )
        logger.info(
            "Migration finished",
            extra={"migration_id": str(migration.id), "status": migration.status},
        )
        return migration

    async def _import_records(
        self,
        migration: Migration,
        records: List[Any],
        author: User,
        logs: List[Dict[str, str]],
    ) -> None:
        threshold = float(self.config.get(SIMILARITY_THRESHOLD, 0.8))
        detector = DuplicateDetector(self.session)
        migration.total = len(records)
        processed = failed = 0

        for index, record in enumerate(records, start=1):
            if not isinstance(record, dict):
                failed += 1
                logs.append(log_line("error", f"Record {index}: not an object"))
                continue

            content = ContentValidator.validate_content(record.get("title"), record.get("description"))
            if not content.is_valid or not str(record.get("category") or "").strip():
                errors = content.errors or ["Missing required metadata: category"]
                failed += 1
                logs.append(log_line("error", f"Record {index}: {'; '.join(errors)}"))
                continue

            if migration.skip_duplicates:
                similarity = await detector.check(record["description"], threshold)
                if similarity.is_duplicate:
                    processed += 1
                    logs.append(log_line("warning", f"Record {index}: duplicate skipped"))
                    continue

            if migration.dry_run:
                processed += 1
                continue

            try:
                async with self.session.begin_nested():
                    await self._create_item(record, author)
            except SQLAlchemyError as exc:
                failed += 1
                logs.append(log_line("error", f"Record {index}: {exc.__class__.__name__}"))
                continue
            processed += 1

        migration.processed = processed
        migration.failed = failed
        migration.percentage = 100.0 if records else 0.0
        logs.append(log_line(
            "info",
            f"Processed {processed} of {len(records)} records ({failed} failed)"
            + (" [dry run]" if migration.dry_run else ""),
        ))
        status = (
            MigrationStatus.FAILED.value
            if records and failed == len(records)
            else MigrationStatus.COMPLETED.value
        )
        self._finish(migration, status, logs)

    async def _create_item(self, record: Dict[str, Any], author: User) -> KnowledgeItem:
        tags = [str(tag) for tag in (record.get("tags") or [])]
        if not tags:
            tags = ContentValidator.extract_keywords(record["description"])
        item = KnowledgeItem(
            title=str(record["title"]).strip(),
            description=str(record["description"]).strip(),
            category=str(record["category"]).strip(),
            tags=tags,
            keywords=list(tags),
            region=record.get("region") or author.region,
            content_url=record.get("content_url"),
            author=author,
            status=KnowledgeStatus.PENDING.value,
            attachments=[],
            approvals=[],
        )
        self.session.add(item)
        await self.session.flush()
        await self.workflows.create_validation(item.id, actor=author, item=item)
        return item

    def _finish(self, migration: Migration, status: str, logs: List[Dict[str, str]]) -> None:
        migration.status = status
        migration.completed_at = utcnow()
        migration.logs = logs

    async def cancel(
        self,
        migration_id: uuid.UUID,
        actor: User,
        ip_address: Optional[str] = None,
    ) -> Migration:
        migration = await self.require_migration(migration_id)
        if migration.status not in CANCELLABLE_STATUSES:
            raise ValidationError("Migration cannot be cancelled")

        migration.status = MigrationStatus.CANCELLED.value
        migration.logs = [*migration.logs, log_line("info", "Migration cancelled by user")]
        await self.session.flush()

        await self.audit.record(
            action=AuditAction.MIGRATION_CANCELLED,
            actor_id=actor.id,
            target_id=migration.id,
            target_model=TargetModel.MIGRATION,
            ip_address=ip_address,
        )
        return migration
