"""Unit tests for JWT access/refresh tokens."""

import uuid
from datetime import timedelta

import pytest

from kms.kernel.identity.jwt import JWTManager


@pytest.fixture
def manager():
    return JWTManager(
        secret_key="unit-test-secret-key-that-is-long-enough",
        algorithm="HS256",
        access_token_expire_minutes=15,
        refresh_token_expire_days=7,
    )


class TestAccessTokens:

    def test_round_trip_claims(self, manager):
        user_id = uuid.uuid4()
        token, _ = manager.create_access_token(user_id, "alice", "Knowledge Champion")

        payload = manager.verify_access_token(token)
        assert payload is not None
        assert payload.sub == str(user_id)
        assert payload.username == "alice"
        assert payload.role == "Knowledge Champion"

    def test_expired_token_rejected(self, manager):
        token, _ = manager.create_access_token(
            uuid.uuid4(), "alice", "Consultant", expires_delta=timedelta(seconds=-5)
        )
        assert manager.verify_access_token(token) is None

    def test_refresh_token_is_not_an_access_token(self, manager):
        token, _ = manager.create_refresh_token(uuid.uuid4())
        assert manager.verify_access_token(token) is None
        assert manager.verify_refresh_token(token) is not None

    def test_other_secret_rejected(self, manager):
        token, _ = manager.create_access_token(uuid.uuid4(), "alice", "Consultant")
        other = JWTManager(secret_key="a-completely-different-secret-key-value")
        assert other.verify_access_token(token) is None

    def test_garbage_rejected(self, manager):
        assert manager.verify_access_token("not.a.token") is None


class TestTokenPair:

    def test_pair_has_distinct_tokens(self, manager):
        pair = manager.create_token_pair(uuid.uuid4(), "bob", "Administrator")

        assert pair.token_type == "bearer"
        assert pair.access_token != pair.refresh_token
        assert 0 < pair.expires_in <= 15 * 60

    def test_tokens_are_unique_per_issue(self, manager):
        user_id = uuid.uuid4()
        first, _ = manager.create_refresh_token(user_id)
        second, _ = manager.create_refresh_token(user_id)
        assert first != second

    def test_hash_token_is_stable_sha256(self):
        digest = JWTManager.hash_token("abc")
        assert digest == JWTManager.hash_token("abc")
        assert len(digest) == 64
