"""
Knowledge item endpoints.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Query, Request, status

from kms.api.deps import ConfigService, CurrentUser, DbSession, ReviewerUser, get_client_ip
from kms.engines.knowledge import KnowledgeService
from kms.kernel.audit import pagination
from kms.schemas.knowledge import (
    KnowledgeCreate,
    KnowledgeListResponse,
    KnowledgeResponse,
    KnowledgeUpdate,
    QualityUpdate,
    ReviewDecision,
)

router = APIRouter()


@router.post("", response_model=KnowledgeResponse, status_code=status.HTTP_201_CREATED)
async def upload_knowledge(
    request: Request,
    data: KnowledgeCreate,
    user: CurrentUser,
    db: DbSession,
    config: ConfigService,
):
    """
    Upload a knowledge item.

    Runs content, metadata, policy and duplicate checks, then stores the
    item as Pending and opens its validation.
    """
    item = await KnowledgeService(db, config).upload(
        user,
        title=data.title,
        description=data.description,
        category=data.category,
        tags=data.tags,
        region=data.region,
        content_url=data.content_url,
        attachments=[attachment.model_dump() for attachment in data.attachments],
        ip_address=get_client_ip(request),
    )
    return KnowledgeResponse.model_validate(item)


@router.get("", response_model=KnowledgeListResponse)
async def list_knowledge(
    user: CurrentUser,
    db: DbSession,
    config: ConfigService,
    search: Optional[str] = None,
    category: Optional[str] = None,
    author: Optional[uuid.UUID] = None,
    flagged: Optional[bool] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """List items visible to the caller."""
    items, total = await KnowledgeService(db, config).list_items(
        user,
        search=search,
        category=category,
        author=author,
        flagged=flagged,
        status=status_filter,
        page=page,
        limit=limit,
    )
    return KnowledgeListResponse(
        items=[KnowledgeResponse.model_validate(item) for item in items],
        pagination=pagination(page, limit, total),
    )


@router.get("/{item_id}", response_model=KnowledgeResponse)
async def get_knowledge(
    item_id: uuid.UUID,
    user: CurrentUser,
    db: DbSession,
    config: ConfigService,
):
    """Get one item and count the view."""
    item = await KnowledgeService(db, config).get_item(item_id, user)
    return KnowledgeResponse.model_validate(item)


@router.put("/{item_id}", response_model=KnowledgeResponse)
async def update_knowledge(
    request: Request,
    item_id: uuid.UUID,
    data: KnowledgeUpdate,
    user: CurrentUser,
    db: DbSession,
    config: ConfigService,
):
    """Author edit; a reviewed item goes back to review."""
    changes = data.model_dump(
        exclude_unset=True,
        exclude={"existing_attachments", "new_attachments", "clear_attachments"},
    )
    item = await KnowledgeService(db, config).update_item(
        item_id,
        user,
        changes,
        existing_attachments=[a.model_dump() for a in data.existing_attachments or []],
        new_attachments=[a.model_dump() for a in data.new_attachments or []],
        clear_attachments=data.clear_attachments,
        ip_address=get_client_ip(request),
    )
    return KnowledgeResponse.model_validate(item)


@router.put("/{item_id}/approve", response_model=KnowledgeResponse)
async def review_knowledge(
    request: Request,
    item_id: uuid.UUID,
    data: ReviewDecision,
    user: ReviewerUser,
    db: DbSession,
    config: ConfigService,
):
    """Approve, reject or request revision of an item directly."""
    item = await KnowledgeService(db, config).review(
        item_id,
        user,
        status=data.status,
        comment=data.comment,
        ip_address=get_client_ip(request),
    )
    return KnowledgeResponse.model_validate(item)


@router.put("/{item_id}/quality", response_model=KnowledgeResponse)
async def update_quality(
    request: Request,
    item_id: uuid.UUID,
    data: QualityUpdate,
    user: ReviewerUser,
    db: DbSession,
    config: ConfigService,
):
    item = await KnowledgeService(db, config).update_quality(
        item_id,
        user,
        mark_safe=data.mark_safe,
        quality_flag=data.quality_flag,
        quality_score=data.quality_score,
        quality_issues=data.quality_issues,
        ip_address=get_client_ip(request),
    )
    return KnowledgeResponse.model_validate(item)


@router.put("/{item_id}/archive", response_model=KnowledgeResponse)
async def archive_knowledge(
    request: Request,
    item_id: uuid.UUID,
    user: ReviewerUser,
    db: DbSession,
    config: ConfigService,
):
    item = await KnowledgeService(db, config).archive(
        item_id, user, ip_address=get_client_ip(request)
    )
    return KnowledgeResponse.model_validate(item)
