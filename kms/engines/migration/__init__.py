"""
Migration Engine - legacy content import jobs.
"""

from kms.engines.migration.migration_service import MigrationService

__all__ = [
    "MigrationService",
]
