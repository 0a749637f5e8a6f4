"""
Configuration service.

Built once at application startup and shared by reference (``app.state``).
Reads are served from an in-memory snapshot (defaults overlaid with stored
rows). Writes go through ConfigurationRepository in the caller's session;
``commit`` persists them and only then rebuilds the snapshot from storage.
"""

import copy
import uuid
from typing import Any, Dict, List, Optional, Tuple

from kms.engines.config.repository import ConfigurationRepository
from kms.kernel.errors import AuthorizationError, NotFoundError, ValidationError
from kms.kernel.models.configuration import ConfigCategory, Configuration
from kms.logging_config import get_logger

logger = get_logger(__name__)

# Well-known keys
AUTO_ASSIGN = "validation.autoAssign"
MAX_PENDING_DAYS = "validation.maxPendingDays"
SIMILARITY_THRESHOLD = "ai.similarityThreshold"
RECOMMENDATION_REFRESH_DAYS = "ai.recommendationRefreshDays"
LEADERBOARD_UPDATE_INTERVAL = "leaderboard.updateInterval"
REQUIRE_DUAL_APPROVAL = "workflow.requireDualApproval"
EMAIL_ENABLED = "notification.emailEnabled"
FORBIDDEN_KEYWORDS = "governance.forbiddenKeywords"

# key -> (value, category, description)
DEFAULT_CONFIGURATIONS: Dict[str, Tuple[Any, str, str]] = {
    AUTO_ASSIGN: (
        True,
        ConfigCategory.WORKFLOW.value,
        "Assign new validations to the least-loaded Knowledge Champion",
    ),
    MAX_PENDING_DAYS: (
        7,
        ConfigCategory.WORKFLOW.value,
        "Days before a pending validation is due",
    ),
    SIMILARITY_THRESHOLD: (
        0.8,
        ConfigCategory.AI.value,
        "Similarity above which an upload is rejected as a duplicate",
    ),
    RECOMMENDATION_REFRESH_DAYS: (
        1,
        ConfigCategory.AI.value,
        "Days between recommendation refreshes (informational; recommendations are computed per request)",
    ),
    LEADERBOARD_UPDATE_INTERVAL: (
        3600,
        ConfigCategory.LEADERBOARD.value,
        "Seconds between leaderboard recalculations (informational; totals are maintained incrementally)",
    ),
    REQUIRE_DUAL_APPROVAL: (
        False,
        ConfigCategory.WORKFLOW.value,
        "Two-approval publishing (informational; a single approval publishes an item)",
    ),
    EMAIL_ENABLED: (
        True,
        ConfigCategory.NOTIFICATION.value,
        "Email notifications (informational; no mail is sent)",
    ),
    FORBIDDEN_KEYWORDS: (
        ["Confidential"],
        ConfigCategory.SECURITY.value,
        "Upload titles containing any of these words violate policy",
    ),
}


# Inclusive bounds for numeric keys
VALUE_RANGES: Dict[str, Tuple[Optional[float], Optional[float]]] = {
    SIMILARITY_THRESHOLD: (0.0, 1.0),
    MAX_PENDING_DAYS: (1, None),
}


def check_value(key: str, value: Any, default: Any) -> None:
    """
    Raise ValidationError unless ``value`` has the shape of ``default``.

    Booleans must be booleans, integers whole numbers, floats any number,
    and lists of strings lists of strings.
    """
    if isinstance(default, bool):
        valid, expected = isinstance(value, bool), "a boolean"
    elif isinstance(default, int):
        valid, expected = isinstance(value, int) and not isinstance(value, bool), "an integer"
    elif isinstance(default, float):
        valid, expected = isinstance(value, (int, float)) and not isinstance(value, bool), "a number"
    elif isinstance(default, list):
        valid = isinstance(value, list) and all(isinstance(v, str) for v in value)
        expected = "a list of strings"
    else:
        valid, expected = isinstance(value, type(default)), type(default).__name__
    if not valid:
        raise ValidationError(f"Invalid value for {key}: expected {expected}")

    low, high = VALUE_RANGES.get(key, (None, None))
    if (low is not None and value < low) or (high is not None and value > high):
        raise ValidationError(
            f"Invalid value for {key}: must be between {low} and {high}"
            if high is not None
            else f"Invalid value for {key}: must be at least {low}"
        )

class ConfigurationService:
    """
    Process-wide configuration holder.

    Usage:
        service = ConfigurationService()
        repository = ConfigurationRepository(session)
        await service.load(repository)
        threshold = service.get(SIMILARITY_THRESHOLD)

        await service.set(repository, SIMILARITY_THRESHOLD, 0.9, actor_id)
        await service.commit(repository)
    """

    def __init__(self, defaults: Optional[Dict[str, Tuple[Any, str, str]]] = None):
        self._defaults = defaults if defaults is not None else DEFAULT_CONFIGURATIONS
        self._values: Dict[str, Any] = {
            key: copy.deepcopy(value) for key, (value, _, _) in self._defaults.items()
        }

    async def load(self, repository: ConfigurationRepository) -> None:
        """Rebuild the snapshot: defaults overlaid with stored rows."""
        rows = await repository.list()
        values = {key: copy.deepcopy(value) for key, (value, _, _) in self._defaults.items()}
        for row in rows:
            values[row.key] = row.value
        self._values = values
        logger.info("Configuration loaded", extra={"stored_keys": len(rows)})

    def get(self, key: str, default: Any = None) -> Any:
        """Current value of a key (a copy, safe to mutate)."""
        if key in self._values:
            return copy.deepcopy(self._values[key])
        return default

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self._values)

    def default_for(self, key: str) -> Optional[Tuple[Any, str, str]]:
        return self._defaults.get(key)

    async def list_configurations(
        self,
        repository: ConfigurationRepository,
        category: Optional[str] = None,
    ) -> List[Configuration]:
        return await repository.list(category)

    async def get_configuration(
        self,
        repository: ConfigurationRepository,
        key: str,
    ) -> Dict[str, Any]:
        """
        Stored row for a key, falling back to its built-in default.

        Raises:
            NotFoundError: If the key is neither stored nor a known default
        """
        config = await repository.get(key)
        if config is not None:
            return {
                "key": config.key,
                "value": config.value,
                "category": config.category,
                "description": config.description,
                "is_editable": config.is_editable,
                "source": "database",
                "updated_at": config.updated_at,
            }
        default = self._defaults.get(key)
        if default is None:
            raise NotFoundError("Configuration not found")
        value, category, description = default
        return {
            "key": key,
            "value": copy.deepcopy(value),
            "category": category,
            "description": description,
            "is_editable": True,
            "source": "default",
            "updated_at": None,
        }

    async def set(
        self,
        repository: ConfigurationRepository,
        key: str,
        value: Any,
        actor_id: uuid.UUID,
        category: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Configuration:
        """
        Create or update a key.

        Raises:
            AuthorizationError: If the stored row is not editable
            ValidationError: If the value does not fit a built-in key
        """
        if key in self._defaults:
            check_value(key, value, self._defaults[key][0])

        existing = await repository.get(key)
        if existing is not None and not existing.is_editable:
            raise AuthorizationError("This configuration is not editable")

        if existing is None and category is None and key in self._defaults:
            category = self._defaults[key][1]
        if existing is None and description is None and key in self._defaults:
            description = self._defaults[key][2]

        config = await repository.upsert(
            key,
            value,
            category=category,
            description=description,
            modified_by=actor_id,
        )
        logger.info("Configuration updated", extra={"key": key})
        return config

    async def delete(self, repository: ConfigurationRepository, key: str) -> Configuration:
        """
        Remove a stored key; reads fall back to the default if there is one.

        Raises:
            NotFoundError: If the key is not stored
            AuthorizationError: If the row is not editable
        """
        config = await repository.get(key)
        if config is None:
            raise NotFoundError("Configuration not found")
        if not config.is_editable:
            raise AuthorizationError("This configuration cannot be deleted")

        await repository.delete(config)
        return config

    async def reset(self, repository: ConfigurationRepository, actor_id: uuid.UUID) -> List[str]:
        """Write every default back to storage. Returns the reset keys."""
        for key, (value, category, description) in self._defaults.items():
            await repository.upsert(
                key,
                copy.deepcopy(value),
                category=category,
                description=description,
                modified_by=actor_id,
            )
        return list(self._defaults)

    async def commit(self, repository: ConfigurationRepository) -> None:
        """
        Commit the caller's transaction, then refresh the snapshot.

        ``set``, ``delete`` and ``reset`` only write rows; the snapshot
        changes only once those rows are committed.
        """
        await repository.commit()
        await self.load(repository)
