"""
Recommendation endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Query

from kms.api.deps import CurrentUser, DbSession
from kms.engines.recommendation import RecommendationService
from kms.schemas.common import MessageResponse
from kms.schemas.recommendation import (
    InteractionRequest,
    Recommendation,
    RecommendationsResponse,
    RecommendedItem,
)

router = APIRouter()


@router.get("", response_model=RecommendationsResponse)
async def get_recommendations(
    user: CurrentUser,
    db: DbSession,
    limit: int = Query(10, ge=1, le=50),
    category: Optional[str] = None,
):
    """Approved items matched to the caller's skills and region."""
    rows = await RecommendationService(db).recommend(user, limit=limit, category=category)
    recommendations = [
        Recommendation(
            item=RecommendedItem.model_validate(row["item"]),
            score=row["score"],
            reason=row["reason"],
        )
        for row in rows
    ]
    return RecommendationsResponse(count=len(recommendations), recommendations=recommendations)


@router.get("/trending", response_model=List[RecommendedItem])
async def get_trending(
    user: CurrentUser,
    db: DbSession,
    period: str = Query("7d", description="1d, 7d or 30d"),
    limit: int = Query(10, ge=1, le=50),
):
    items = await RecommendationService(db).trending(period=period, limit=limit)
    return [RecommendedItem.model_validate(item) for item in items]


@router.post("/interaction", response_model=MessageResponse)
async def record_interaction(
    data: InteractionRequest,
    user: CurrentUser,
    db: DbSession,
):
    await RecommendationService(db).record_interaction(user, data.item_id, data.interaction_type)
    return MessageResponse(message="Interaction recorded")
