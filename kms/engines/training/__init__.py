"""
Training Engine - modules, progress and live sessions.
"""

from kms.engines.training.training_service import TrainingService, completion_percentage

__all__ = [
    "TrainingService",
    "completion_percentage",
]
