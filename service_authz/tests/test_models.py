"""
Unit tests for requirement models.
"""

import pytest

from service_authz.app.permissions.models import (
    Combinator, Permission, Requirement, RequirementSet
)
from shared.errors import ValidationError


class TestRequirement:
    """Test cases for Requirement."""

    def test_defaults(self):
        """Test default instance and combinator."""
        requirement = Requirement("REPORTS", [Permission.READ])

        assert requirement.instance == ""
        assert requirement.is_instance_scoped is False
        assert requirement.combinator == Combinator.AND
        assert requirement.permissions == ("r",)

    def test_string_combinator_is_coerced(self):
        """Test combinator given as text."""
        requirement = Requirement("REPORTS", ["r", "x"], combinator="OR")

        assert requirement.combinator is Combinator.OR

    def test_unknown_combinator(self):
        """Test invalid combinator."""
        with pytest.raises(ValidationError):
            Requirement("REPORTS", ["r"], combinator="xor")

    def test_empty_permissions(self):
        """Test that a requirement needs at least one permission."""
        with pytest.raises(ValidationError):
            Requirement("REPORTS", [])

    def test_empty_resource(self):
        """Test that a requirement needs a resource."""
        with pytest.raises(ValidationError):
            Requirement("", ["r"])

    def test_non_string_resource(self):
        """Test that a resource must be text."""
        with pytest.raises(ValidationError):
            Requirement(123, ["r"])

    def test_non_string_instance(self):
        """Test that an instance placeholder must be text."""
        with pytest.raises(ValidationError):
            Requirement("REPORTS", ["r"], instance=5)

    def test_non_string_permission_code(self):
        """Test that every permission code must be text."""
        with pytest.raises(ValidationError):
            Requirement("REPORTS", ["r", 1])

    def test_permissions_not_a_list(self):
        """Test that permissions must be a code or a list of codes."""
        with pytest.raises(ValidationError):
            Requirement("REPORTS", 7)

    def test_requirement_is_immutable(self):
        """Test frozen requirement."""
        requirement = Requirement("REPORTS", ["r"])

        with pytest.raises(AttributeError):
            requirement.resource = "GROUPS"

    def test_from_dict(self):
        """Test building from a mapping."""
        requirement = Requirement.from_dict({
            "resource": "REPORTS",
            "instance": "report_id",
            "permissions": ["r", "p"],
            "combinator": "or",
        })

        assert requirement == Requirement("REPORTS", ("r", "p"), "report_id", Combinator.OR)
        assert requirement.to_dict() == {
            "resource": "REPORTS",
            "instance": "report_id",
            "permissions": ["r", "p"],
            "combinator": "or",
        }

    def test_from_dict_missing_keys(self):
        """Test mapping without permissions."""
        with pytest.raises(ValidationError):
            Requirement.from_dict({"resource": "REPORTS"})


class TestRequirementSet:
    """Test cases for RequirementSet."""

    def test_of_preserves_order(self):
        """Test declaration order."""
        first = Requirement("REPORTS", ["r"])
        second = Requirement("GROUPS", ["i"])

        requirements = RequirementSet.of(first, second)

        assert len(requirements) == 2
        assert list(requirements) == [first, second]

    def test_empty_set(self):
        """Test that a set needs at least one requirement."""
        with pytest.raises(ValidationError):
            RequirementSet.of()

    def test_from_list(self):
        """Test building from plain data."""
        requirements = RequirementSet.from_list([
            {"resource": "REPORTS", "permissions": ["r"]},
            {"resource": "GROUPS", "permissions": ["i", "u"], "combinator": "or"},
        ])

        assert [r.resource for r in requirements] == ["REPORTS", "GROUPS"]
        assert requirements.requirements[1].combinator is Combinator.OR

    def test_from_list_rejects_non_list(self):
        """Test invalid declarations container."""
        with pytest.raises(ValidationError):
            RequirementSet.from_list({"resource": "REPORTS"})
