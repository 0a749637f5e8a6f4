"""
Project manager endpoints.
"""

import uuid

from fastapi import APIRouter, Request

from kms.api.deps import DbSession, ManagerUser, get_client_ip
from kms.kernel.identity.identity_service import IdentityService
from kms.schemas.auth import PromotionEvaluation, PromotionResponse

router = APIRouter()


@router.put("/users/{user_id}/evaluate", response_model=PromotionResponse)
async def evaluate_promotion(
    request: Request,
    user_id: uuid.UUID,
    data: PromotionEvaluation,
    user: ManagerUser,
    db: DbSession,
):
    """Record a promotion evaluation; an omitted status keeps the current one."""
    evaluated = await IdentityService(db).evaluate_promotion(
        user,
        user_id,
        promotion_status=data.status,
        notes=data.notes,
        ip_address=get_client_ip(request),
    )
    return PromotionResponse.model_validate(evaluated)
