"""
Configuration Engine - runtime business settings.
"""

from kms.engines.config.repository import ConfigurationRepository
from kms.engines.config.configuration_service import (
    AUTO_ASSIGN,
    DEFAULT_CONFIGURATIONS,
    FORBIDDEN_KEYWORDS,
    MAX_PENDING_DAYS,
    REQUIRE_DUAL_APPROVAL,
    SIMILARITY_THRESHOLD,
    ConfigurationService,
)

__all__ = [
    "ConfigurationRepository",
    "ConfigurationService",
    "DEFAULT_CONFIGURATIONS",
    "AUTO_ASSIGN",
    "FORBIDDEN_KEYWORDS",
    "MAX_PENDING_DAYS",
    "REQUIRE_DUAL_APPROVAL",
    "SIMILARITY_THRESHOLD",
]
