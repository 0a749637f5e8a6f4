"""Unit tests for role checks and error bodies."""

import pytest

from kms.kernel.errors import AuthorizationError, ConflictError, ValidationError
from kms.kernel.permissions import (
    ADMIN_ONLY,
    ADMIN_TIER,
    MANAGER_ROLES,
    REVIEWER_ROLES,
    ensure_role,
    is_admin_tier,
    is_allowed,
    is_reviewer,
)


class TestAllowLists:

    def test_exact_membership(self):
        assert is_allowed("Administrator", ADMIN_ONLY)
        assert not is_allowed("Governance Council", ADMIN_ONLY)
        assert not is_allowed("administrator", ADMIN_ONLY)

    def test_no_hierarchy(self):
        # Administrators are not implicitly allowed everywhere
        assert not is_allowed("Administrator", ("Knowledge Champion",))

    def test_reviewers(self):
        assert is_reviewer("Knowledge Champion")
        assert is_reviewer("Governance Council")
        assert not is_reviewer("Consultant")
        assert not is_reviewer("Project Manager")

    def test_admin_tier(self):
        assert set(ADMIN_TIER) == {"Administrator", "Governance Council"}
        assert is_admin_tier("Governance Council")
        assert not is_admin_tier("Knowledge Champion")

    def test_manager_roles(self):
        assert set(MANAGER_ROLES) == {"Project Manager", "Administrator"}

    def test_ensure_role_raises(self):
        with pytest.raises(AuthorizationError) as exc_info:
            ensure_role("Consultant", REVIEWER_ROLES)
        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "Not authorized: role 'Consultant' is not permitted"

    def test_ensure_role_passes(self):
        ensure_role("Knowledge Champion", REVIEWER_ROLES)


class TestErrorBodies:

    def test_errors_included_when_present(self):
        error = ValidationError("Content validation failed", errors=["Title is missing"])
        assert error.status_code == 400
        assert error.to_dict() == {
            "message": "Content validation failed",
            "errors": ["Title is missing"],
        }

    def test_extra_fields_merged(self):
        error = ConflictError("Duplicate content detected", similarity_score=0.9)
        assert error.status_code == 409
        assert error.to_dict() == {"message": "Duplicate content detected", "similarity_score": 0.9}
