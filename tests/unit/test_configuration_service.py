"""Unit tests for the in-process configuration snapshot."""

import uuid
from types import SimpleNamespace

import pytest

from kms.engines.config import (
    AUTO_ASSIGN,
    FORBIDDEN_KEYWORDS,
    MAX_PENDING_DAYS,
    REQUIRE_DUAL_APPROVAL,
    SIMILARITY_THRESHOLD,
    ConfigurationService,
)
from kms.kernel.errors import AuthorizationError, NotFoundError, ValidationError


class InMemoryRepository:
    """Stands in for ConfigurationRepository; rows are plain namespaces."""

    def __init__(self, rows=None):
        self.rows = {row.key: row for row in (rows or [])}
        self.commits = 0

    async def list(self, category=None):
        return [row for row in self.rows.values() if category in (None, row.category)]

    async def get(self, key):
        return self.rows.get(key)

    async def upsert(self, key, value, category=None, description=None, modified_by=None):
        row = self.rows.get(key)
        if row is None:
            row = SimpleNamespace(
                key=key,
                value=value,
                category=category or "system",
                description=description,
                is_editable=True,
            )
            self.rows[key] = row
        else:
            row.value = value
        return row

    async def delete(self, row):
        self.rows.pop(row.key, None)

    async def commit(self):
        self.commits += 1


class FailingCommitRepository(InMemoryRepository):
    async def commit(self):
        raise RuntimeError("commit failed")


def stored(key, value, is_editable=True):
    return SimpleNamespace(key=key, value=value, category="ai", description=None, is_editable=is_editable)


class TestDefaults:

    def test_builtin_defaults(self):
        service = ConfigurationService()
        assert service.get(AUTO_ASSIGN) is True
        assert service.get(SIMILARITY_THRESHOLD) == 0.8
        assert service.get(FORBIDDEN_KEYWORDS) == ["Confidential"]

    def test_dual_approval_is_informational(self):
        value, _, description = ConfigurationService().default_for(REQUIRE_DUAL_APPROVAL)
        assert value is False
        assert "single approval publishes" in description

    def test_unknown_key_returns_default_argument(self):
        assert ConfigurationService().get("no.such.key", 42) == 42

    def test_get_returns_a_copy(self):
        service = ConfigurationService()
        service.get(FORBIDDEN_KEYWORDS).append("Secret")
        assert service.get(FORBIDDEN_KEYWORDS) == ["Confidential"]


@pytest.mark.asyncio
class TestStorage:

    async def test_load_overlays_stored_rows(self):
        service = ConfigurationService()
        await service.load(InMemoryRepository([stored(SIMILARITY_THRESHOLD, 0.95)]))
        assert service.get(SIMILARITY_THRESHOLD) == 0.95
        assert service.get(AUTO_ASSIGN) is True

    async def test_set_is_visible_after_commit(self):
        service = ConfigurationService()
        repository = InMemoryRepository()

        row = await service.set(repository, FORBIDDEN_KEYWORDS, ["Secret"], actor_id=uuid.uuid4())
        assert service.get(FORBIDDEN_KEYWORDS) == ["Confidential"]

        await service.commit(repository)

        assert repository.commits == 1
        assert service.get(FORBIDDEN_KEYWORDS) == ["Secret"]
        # Category is taken from the built-in definition
        assert row.category == "security"

    async def test_set_rejects_read_only_row(self):
        service = ConfigurationService()
        repository = InMemoryRepository([stored("ai.model", "v1", is_editable=False)])

        with pytest.raises(AuthorizationError):
            await service.set(repository, "ai.model", "v2", actor_id=uuid.uuid4())

    async def test_delete_falls_back_to_default(self):
        service = ConfigurationService()
        repository = InMemoryRepository()
        await service.set(repository, SIMILARITY_THRESHOLD, 0.5, actor_id=uuid.uuid4())
        await service.commit(repository)
        assert service.get(SIMILARITY_THRESHOLD) == 0.5

        await service.delete(repository, SIMILARITY_THRESHOLD)
        await service.commit(repository)

        assert service.get(SIMILARITY_THRESHOLD) == 0.8
        assert await repository.get(SIMILARITY_THRESHOLD) is None

    async def test_delete_missing_key(self):
        with pytest.raises(NotFoundError):
            await ConfigurationService().delete(InMemoryRepository(), "no.such.key")

    async def test_get_configuration_reports_source(self):
        service = ConfigurationService()
        repository = InMemoryRepository()

        default = await service.get_configuration(repository, AUTO_ASSIGN)
        assert default["source"] == "default"
        assert default["value"] is True

        with pytest.raises(NotFoundError):
            await service.get_configuration(repository, "no.such.key")

    async def test_reset_restores_every_default(self):
        service = ConfigurationService()
        repository = InMemoryRepository()
        await service.set(repository, AUTO_ASSIGN, False, actor_id=uuid.uuid4())

        await service.commit(repository)

        keys = await service.reset(repository, actor_id=uuid.uuid4())
        await service.commit(repository)

        assert AUTO_ASSIGN in keys
        assert service.get(AUTO_ASSIGN) is True
        assert (await repository.get(AUTO_ASSIGN)).value is True

    async def test_failed_commit_leaves_snapshot_alone(self):
        service = ConfigurationService()
        repository = FailingCommitRepository()
        await service.set(repository, SIMILARITY_THRESHOLD, 0.5, actor_id=uuid.uuid4())

        with pytest.raises(RuntimeError):
            await service.commit(repository)

        assert service.get(SIMILARITY_THRESHOLD) == 0.8


@pytest.mark.asyncio
class TestValueChecks:

    @pytest.mark.parametrize(
        "key, value",
        [
            (SIMILARITY_THRESHOLD, "high"),
            (SIMILARITY_THRESHOLD, True),
            (SIMILARITY_THRESHOLD, 1.5),
            (MAX_PENDING_DAYS, 2.5),
            (MAX_PENDING_DAYS, 0),
            (AUTO_ASSIGN, "yes"),
            (FORBIDDEN_KEYWORDS, "Secret"),
            (FORBIDDEN_KEYWORDS, ["Secret", 3]),
        ],
    )
    async def test_rejects_wrong_shape(self, key, value):
        service = ConfigurationService()
        repository = InMemoryRepository()

        with pytest.raises(ValidationError):
            await service.set(repository, key, value, actor_id=uuid.uuid4())

        assert await repository.get(key) is None

    @pytest.mark.parametrize(
        "key, value",
        [
            (SIMILARITY_THRESHOLD, 1),
            (SIMILARITY_THRESHOLD, 0.65),
            (MAX_PENDING_DAYS, 3),
            (AUTO_ASSIGN, False),
            (FORBIDDEN_KEYWORDS, []),
        ],
    )
    async def test_accepts_matching_shape(self, key, value):
        service = ConfigurationService()
        repository = InMemoryRepository()

        await service.set(repository, key, value, actor_id=uuid.uuid4())

        assert (await repository.get(key)).value == value

    async def test_unknown_keys_take_any_value(self):
        service = ConfigurationService()
        repository = InMemoryRepository()

        await service.set(repository, "ui.theme", {"dark": True}, actor_id=uuid.uuid4())

        assert (await repository.get("ui.theme")).value == {"dark": True}
