"""Unit tests for password hashing."""

import pytest

from kms.kernel.identity.password import (
    PasswordHasher,
    hash_password,
    verify_password,
)


@pytest.fixture
def hasher():
    # Minimum work factor keeps the suite fast
    return PasswordHasher(rounds=4)


class TestPasswordHasher:
    """Tests for PasswordHasher."""

    def test_hash_creates_different_hashes(self, hasher):
        """Same password should create different hashes (due to salt)."""
        password = "TestPassword123"
        hash1 = hasher.hash(password)
        hash2 = hasher.hash(password)

        assert hash1 != hash2
        assert hash1.startswith("$2b$")  # bcrypt prefix

    def test_verify_correct_password(self, hasher):
        password = "TestPassword123"
        hashed = hasher.hash(password)

        assert hasher.verify(password, hashed) is True

    def test_verify_wrong_password(self, hasher):
        hashed = hasher.hash("TestPassword123")

        assert hasher.verify("WrongPassword", hashed) is False

    def test_malformed_hash_does_not_verify(self, hasher):
        assert hasher.verify("TestPassword123", "not-a-bcrypt-hash") is False

    def test_rounds_recorded_in_hash(self, hasher):
        assert hasher.hash("TestPassword123").split("$")[2] == "04"

    def test_convenience_functions(self):
        """Test hash_password and verify_password functions."""
        password = "TestPassword123"
        hashed = hash_password(password)

        assert verify_password(password, hashed) is True
        assert verify_password("wrong", hashed) is False
