"""
Recommendation Engine - skill-matched and trending content.
"""

from kms.engines.recommendation.recommendation_service import (
    TRENDING_PERIODS,
    RecommendationService,
    score_item,
)

__all__ = [
    "RecommendationService",
    "TRENDING_PERIODS",
    "score_item",
]
