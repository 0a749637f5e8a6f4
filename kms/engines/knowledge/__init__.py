"""
Knowledge Engine - item lifecycle.
"""

from kms.engines.knowledge.knowledge_service import DECISION_STATUSES, KnowledgeService

__all__ = [
    "DECISION_STATUSES",
    "KnowledgeService",
]
