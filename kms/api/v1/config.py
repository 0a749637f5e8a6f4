"""
Runtime configuration endpoints (administrator only).
"""

from typing import List, Optional

from fastapi import APIRouter, Request

from kms.api.deps import AdminUser, ConfigRepository, ConfigService, get_client_ip
from kms.kernel.audit import AuditAction, AuditLogger
from kms.kernel.models.audit_log import TargetModel
from kms.schemas.common import MessageResponse
from kms.schemas.configuration import (
    ConfigResetResponse,
    ConfigurationResponse,
    ConfigurationUpdate,
)

router = APIRouter()


@router.get("", response_model=List[ConfigurationResponse])
async def list_configurations(
    user: AdminUser,
    repository: ConfigRepository,
    config: ConfigService,
    category: Optional[str] = None,
):
    """Stored configuration rows, optionally for one category."""
    rows = await config.list_configurations(repository, category)
    return [ConfigurationResponse.model_validate(row) for row in rows]


@router.post("/reset", response_model=ConfigResetResponse)
async def reset_configurations(
    request: Request,
    user: AdminUser,
    repository: ConfigRepository,
    config: ConfigService,
):
    """Restore every built-in key to its default value."""
    keys = await config.reset(repository, actor_id=user.id)
    await AuditLogger(repository.session).record(
        action=AuditAction.CONFIG_RESET,
        actor_id=user.id,
        target_model=TargetModel.CONFIGURATION,
        details={"keys": keys},
        ip_address=get_client_ip(request),
    )
    await config.commit(repository)
    return ConfigResetResponse(message="Configurations reset to defaults", keys=keys)


@router.get("/{key}", response_model=ConfigurationResponse)
async def get_configuration(
    key: str,
    user: AdminUser,
    repository: ConfigRepository,
    config: ConfigService,
):
    return ConfigurationResponse.model_validate(await config.get_configuration(repository, key))


@router.put("/{key}", response_model=ConfigurationResponse)
async def update_configuration(
    request: Request,
    key: str,
    data: ConfigurationUpdate,
    user: AdminUser,
    repository: ConfigRepository,
    config: ConfigService,
):
    """
    Create or update a key.

    Once committed, the new value is visible to subsequent operations in
    this process.
    """
    row = await config.set(
        repository,
        key,
        data.value,
        actor_id=user.id,
        category=data.category,
        description=data.description,
    )
    await AuditLogger(repository.session).record(
        action=AuditAction.CONFIG_UPDATED,
        actor_id=user.id,
        target_id=row.id,
        target_model=TargetModel.CONFIGURATION,
        details={"key": key, "value": data.value},
        ip_address=get_client_ip(request),
    )
    await config.commit(repository)
    return ConfigurationResponse.model_validate(row)


@router.delete("/{key}", response_model=MessageResponse)
async def delete_configuration(
    request: Request,
    key: str,
    user: AdminUser,
    repository: ConfigRepository,
    config: ConfigService,
):
    row = await config.delete(repository, key)
    await AuditLogger(repository.session).record(
        action=AuditAction.CONFIG_DELETED,
        actor_id=user.id,
        target_id=row.id,
        target_model=TargetModel.CONFIGURATION,
        details={"key": key},
        ip_address=get_client_ip(request),
    )
    await config.commit(repository)
    return MessageResponse(message="Configuration deleted")
