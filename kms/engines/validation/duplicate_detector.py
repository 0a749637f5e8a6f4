"""
Near-duplicate detection by word-set (Jaccard) similarity.
"""

import uuid
from typing import List, Optional, Set

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kms.kernel.models.knowledge import KnowledgeItem, KnowledgeStatus

# Items scoring above this are reported as similar even when not duplicates
SIMILAR_THRESHOLD = 0.3
MAX_SIMILAR_ITEMS = 5

COMPARED_STATUSES = (
    KnowledgeStatus.PENDING.value,
    KnowledgeStatus.APPROVED.value,
)


class SimilarItem(BaseModel):
    id: uuid.UUID
    title: str
    score: float


class SimilarityResult(BaseModel):
    """Best match against existing content."""

    score: float = 0.0
    is_duplicate: bool = False
    best_match_id: Optional[uuid.UUID] = None
    similar_items: List[SimilarItem] = []


def word_set(text: Optional[str]) -> Set[str]:
    """Lower-cased whitespace-separated words."""
    return set((text or "").lower().split())


def jaccard_similarity(a: str, b: str) -> float:
    """|A ∩ B| / |A ∪ B| over word sets; 0.0 when both are empty."""
    words_a, words_b = word_set(a), word_set(b)
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


class DuplicateDetector:
    """
    Compares a description against every Pending or Approved item.

    Usage:
        detector = DuplicateDetector(session)
        result = await detector.check(description, threshold=0.8)
        if result.is_duplicate:
            ...
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def check(
        self,
        description: str,
        threshold: float,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> SimilarityResult:
        query = select(KnowledgeItem.id, KnowledgeItem.title, KnowledgeItem.description).where(
            KnowledgeItem.status.in_(COMPARED_STATUSES)
        )
        if exclude_id:
            query = query.where(KnowledgeItem.id != exclude_id)
        rows = (await self.session.execute(query)).all()
        return self.compare(description, rows, threshold)

    @staticmethod
    def compare(description: str, candidates, threshold: float) -> SimilarityResult:
        """Score (id, title, description) candidates against a description."""
        scored = []
        for item_id, title, other in candidates:
            scored.append((jaccard_similarity(description, other), item_id, title))
        if not scored:
            return SimilarityResult()

        scored.sort(key=lambda entry: entry[0], reverse=True)
        best_score, best_id, _ = scored[0]
        similar = [
            SimilarItem(id=item_id, title=title, score=round(score, 4))
            for score, item_id, title in scored
            if score > SIMILAR_THRESHOLD
        ][:MAX_SIMILAR_ITEMS]

        return SimilarityResult(
            score=best_score,
            is_duplicate=best_score > threshold,
            best_match_id=best_id,
            similar_items=similar,
        )
