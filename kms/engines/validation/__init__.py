"""
Validation Engine - upload checks and the review workflow.

Components:
- ContentValidator: content, metadata and governance policy checks
- DuplicateDetector: word-set similarity against existing items
- ValidationWorkflowService: assignment, decisions, reassignment
"""

from kms.engines.validation.content_validator import CheckResult, ContentValidator, PolicyResult
from kms.engines.validation.duplicate_detector import (
    DuplicateDetector,
    SimilarityResult,
    jaccard_similarity,
)
from kms.engines.validation.workflow_service import (
    ITEM_TO_VALIDATION_STATUS,
    UPDATE_STATUSES,
    ValidationWorkflowService,
    mirror_onto_item,
)

__all__ = [
    "CheckResult",
    "ContentValidator",
    "DuplicateDetector",
    "ITEM_TO_VALIDATION_STATUS",
    "PolicyResult",
    "SimilarityResult",
    "UPDATE_STATUSES",
    "ValidationWorkflowService",
    "jaccard_similarity",
    "mirror_onto_item",
]
