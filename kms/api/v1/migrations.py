"""
Legacy content migration endpoints (administrator and governance council).
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Query, Request, status

from kms.api.deps import AdminTierUser, ConfigService, DbSession, get_client_ip
from kms.engines.migration import MigrationService
from kms.kernel.audit import pagination
from kms.schemas.migration import (
    MigrationActionResponse,
    MigrationCreate,
    MigrationListResponse,
    MigrationResponse,
)

router = APIRouter()


@router.get("", response_model=MigrationListResponse)
async def list_migrations(
    user: AdminTierUser,
    db: DbSession,
    config: ConfigService,
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    migrations, total = await MigrationService(db, config).list_migrations(
        status=status_filter, page=page, limit=limit
    )
    return MigrationListResponse(
        migrations=[MigrationResponse.model_validate(m) for m in migrations],
        pagination=pagination(page, limit, total),
    )


@router.post("", response_model=MigrationResponse, status_code=status.HTTP_201_CREATED)
async def create_migration(
    request: Request,
    data: MigrationCreate,
    user: AdminTierUser,
    db: DbSession,
    config: ConfigService,
):
    """
    Register an import job.

    Records to import are read from ``connection_details.records`` when
    the job is started.
    """
    migration = await MigrationService(db, config).create(
        user,
        name=data.name,
        source_system=data.source_system,
        description=data.description,
        target_system=data.target_system,
        connection_details=data.connection_details,
        batch_size=data.batch_size,
        dry_run=data.dry_run,
        skip_duplicates=data.skip_duplicates,
        ip_address=get_client_ip(request),
    )
    return MigrationResponse.model_validate(migration)


@router.get("/{migration_id}", response_model=MigrationResponse)
async def get_migration(
    migration_id: uuid.UUID,
    user: AdminTierUser,
    db: DbSession,
    config: ConfigService,
):
    return MigrationResponse.model_validate(
        await MigrationService(db, config).require_migration(migration_id)
    )


@router.post("/{migration_id}/start", response_model=MigrationActionResponse)
async def start_migration(
    request: Request,
    migration_id: uuid.UUID,
    user: AdminTierUser,
    db: DbSession,
    config: ConfigService,
):
    """Run a Pending job to completion."""
    migration = await MigrationService(db, config).start(
        migration_id, user, ip_address=get_client_ip(request)
    )
    return MigrationActionResponse(
        message=f"Migration {migration.status.lower()}",
        migration=MigrationResponse.model_validate(migration),
    )


@router.post("/{migration_id}/cancel", response_model=MigrationActionResponse)
async def cancel_migration(
    request: Request,
    migration_id: uuid.UUID,
    user: AdminTierUser,
    db: DbSession,
    config: ConfigService,
):
    migration = await MigrationService(db, config).cancel(
        migration_id, user, ip_address=get_client_ip(request)
    )
    return MigrationActionResponse(
        message="Migration cancelled",
        migration=MigrationResponse.model_validate(migration),
    )
