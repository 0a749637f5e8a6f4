"""
Mentorship Engine - mentor discovery and pairings.
"""

from kms.engines.mentorship.mentorship_service import MentorshipService

__all__ = [
    "MentorshipService",
]
