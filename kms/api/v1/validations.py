"""
Validation workflow endpoints.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Query, Request, status

from kms.api.deps import AdminTierUser, ConfigService, DbSession, ReviewerUser, get_client_ip
from kms.engines.validation import ValidationWorkflowService
from kms.schemas.validation import (
    ReassignRequest,
    ValidationCreate,
    ValidationResponse,
    ValidationUpdate,
)

router = APIRouter()


@router.post("", response_model=ValidationResponse, status_code=status.HTTP_201_CREATED)
async def create_validation(
    request: Request,
    data: ValidationCreate,
    user: ReviewerUser,
    db: DbSession,
    config: ConfigService,
):
    """Open the validation for an item (one per item)."""
    workflow = await ValidationWorkflowService(db, config).create_validation(
        data.knowledge_item_id,
        actor=user,
        reviewer_id=data.reviewer_id,
        priority=data.priority,
        ip_address=get_client_ip(request),
    )
    return ValidationResponse.model_validate(workflow)


@router.get("", response_model=List[ValidationResponse])
async def list_validations(
    user: ReviewerUser,
    db: DbSession,
    config: ConfigService,
    status_filter: Optional[str] = Query(None, alias="status"),
    assigned_to_me: bool = False,
):
    """
    Validation queue, Critical first then oldest first.

    Without a status filter Knowledge Champions see open validations and
    admin-tier users see all.
    """
    workflows = await ValidationWorkflowService(db, config).list_validations(
        user, status=status_filter, assigned_to_me=assigned_to_me
    )
    return [ValidationResponse.model_validate(workflow) for workflow in workflows]


@router.get("/{validation_id}", response_model=ValidationResponse)
async def get_validation(
    validation_id: uuid.UUID,
    user: ReviewerUser,
    db: DbSession,
    config: ConfigService,
):
    workflow = await ValidationWorkflowService(db, config).get_validation(validation_id)
    return ValidationResponse.model_validate(workflow)


@router.put("/{validation_id}", response_model=ValidationResponse)
async def update_validation(
    request: Request,
    validation_id: uuid.UUID,
    data: ValidationUpdate,
    user: ReviewerUser,
    db: DbSession,
    config: ConfigService,
):
    """Record a review decision; the item is updated to match."""
    workflow = await ValidationWorkflowService(db, config).update_validation(
        validation_id,
        actor=user,
        status=data.status,
        review_notes=data.review_notes,
        revision_comments=data.revision_comments,
        ip_address=get_client_ip(request),
    )
    return ValidationResponse.model_validate(workflow)


@router.put("/{validation_id}/reassign", response_model=ValidationResponse)
async def reassign_validation(
    request: Request,
    validation_id: uuid.UUID,
    data: ReassignRequest,
    user: AdminTierUser,
    db: DbSession,
    config: ConfigService,
):
    workflow = await ValidationWorkflowService(db, config).reassign(
        validation_id,
        data.reviewer_id,
        actor=user,
        ip_address=get_client_ip(request),
    )
    return ValidationResponse.model_validate(workflow)
