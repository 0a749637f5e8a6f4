"""
Content recommendations from a user's skills, plus trending items.
"""

import uuid
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from kms.engines.leaderboard.scorer import LeaderboardService
from kms.kernel.errors import NotFoundError, ValidationError
from kms.kernel.models.base import utcnow
from kms.kernel.models.knowledge import KnowledgeItem, KnowledgeStatus
from kms.kernel.models.user import User
from kms.logging_config import get_logger

logger = get_logger(__name__)

BASE_SCORE = 0.5
REGION_BONUS = 0.2
TAG_BONUS = 0.1
MAX_SCORE = 1.0

TRENDING_PERIODS = {"1d": 1, "7d": 7, "30d": 30}
INTERACTION_TYPES = ("view", "download")


def score_item(item: KnowledgeItem, skills: List[str], region: Optional[str]) -> Dict[str, Any]:
    """
    Relevance of one item to a user's skills.

    Returns:
        Dict with score, matched tags and whether the category matched
    """
    wanted = {skill.lower() for skill in skills}
    matched_tags = [tag for tag in (item.tags or []) if tag.lower() in wanted]
    category_match = (item.category or "").lower() in wanted

    score = BASE_SCORE
    if region and item.region == region:
        score += REGION_BONUS
    score += TAG_BONUS * len(matched_tags)
    return {
        "score": round(min(score, MAX_SCORE), 2),
        "matched_tags": matched_tags,
        "category_match": category_match,
    }


class RecommendationService:
    """
    Usage:
        service = RecommendationService(session)
        recs = await service.recommend(user, limit=10)
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def recommend(
        self,
        user: User,
        limit: int = 10,
        category: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Approved items whose tags or category match the user's skills.

        Users without matching content get the most viewed Approved items
        at the base score.
        """
        query = select(KnowledgeItem).where(
            KnowledgeItem.status == KnowledgeStatus.APPROVED.value,
            KnowledgeItem.author_id != user.id,
        )
        if category:
            query = query.where(KnowledgeItem.category == category)
        items = list((await self.session.execute(query)).scalars().all())

        skills = list(user.skills or [])
        recommendations = []
        for item in items:
            relevance = score_item(item, skills, user.region)
            if not relevance["matched_tags"] and not relevance["category_match"]:
                continue
            reasons = relevance["matched_tags"] or [item.category]
            recommendations.append({
                "item": item,
                "score": relevance["score"],
                "reason": f"Matches your skills: {', '.join(reasons)}",
            })

        if not recommendations:
            popular = sorted(items, key=lambda item: (-item.views, str(item.id)))
            recommendations = [
                {"item": item, "score": BASE_SCORE, "reason": "Popular in your network"}
                for item in popular
            ]

        recommendations.sort(key=lambda rec: (-rec["score"], -rec["item"].views))
        return recommendations[:limit]

    async def trending(self, period: str = "7d", limit: int = 10) -> List[KnowledgeItem]:
        """Approved items created within the period, most viewed first."""
        if period not in TRENDING_PERIODS:
            raise ValidationError("Invalid period. Use one of: 1d, 7d, 30d")
        since = utcnow() - timedelta(days=TRENDING_PERIODS[period])
        result = await self.session.execute(
            select(KnowledgeItem)
            .where(
                KnowledgeItem.status == KnowledgeStatus.APPROVED.value,
                KnowledgeItem.created_at >= since,
            )
            .order_by(KnowledgeItem.views.desc(), KnowledgeItem.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def record_interaction(
        self,
        user: User,
        item_id: uuid.UUID,
        interaction_type: str,
    ) -> None:
        """
        Count a view or download.

        A view increments the item's views and the author's leaderboard
        views; a download increments the author's leaderboard downloads.
        """
        if interaction_type not in INTERACTION_TYPES:
            raise ValidationError("Invalid interaction type. Use one of: view, download")

        item = await self.session.get(KnowledgeItem, item_id)
        if item is None:
            raise NotFoundError("Knowledge item not found")

        leaderboard = LeaderboardService(self.session)
        if interaction_type == "view":
            await self.session.execute(
                update(KnowledgeItem)
                .where(KnowledgeItem.id == item.id)
                .values(views=KnowledgeItem.views + 1)
                .execution_options(synchronize_session=False)
            )
            await self.session.refresh(item)
            await leaderboard.increment_score(item.author_id, "views")
        else:
            await leaderboard.increment_score(item.author_id, "downloads")

        logger.info(
            "Interaction recorded",
            extra={"item_id": str(item.id), "interaction": interaction_type, "user_id": str(user.id)},
        )
