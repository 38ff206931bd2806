"""
Unit tests for PermissionEvaluator.
"""

import pytest

from service_authz.app.permissions.evaluator import PermissionEvaluator
from service_authz.app.permissions.index import PermissionIndex
from service_authz.app.permissions.models import (
    Combinator, Permission, Requirement, RequirementSet
)


class CountingResolver:
    """Instance resolver that records every lookup."""

    def __init__(self, values=None):
        self.values = values or {}
        self.calls = []

    def __call__(self, name):
        self.calls.append(name)
        return self.values.get(name)


class TestPermissionEvaluator:
    """Test cases for PermissionEvaluator."""

    @pytest.fixture
    def evaluator(self):
        return PermissionEvaluator()

    @pytest.fixture
    def reports_index(self):
        return PermissionIndex.build({
            "permissions": [
                {"rsname": "REPORTS:u:2", "scopes": ["r", "x", "p", "u"]}
            ]
        })

    @pytest.fixture
    def reports_requirement(self):
        return Requirement(
            resource="REPORTS",
            instance="id",
            permissions=["r", "x", "p", "u"],
            combinator=Combinator.AND
        )

    def test_instance_requirement_granted(self, evaluator, reports_index, reports_requirement):
        """Test requirement on the granted instance."""
        assert evaluator.check(reports_index, reports_requirement, {"id": "2"}.get) is True

    def test_instance_requirement_other_instance(self, evaluator, reports_index, reports_requirement):
        """Test requirement on an instance with no grant."""
        assert evaluator.check(reports_index, reports_requirement, {"id": "25"}.get) is False

    def test_instance_requirement_unresolved_fails_closed(self, evaluator, reports_index,
                                                          reports_requirement):
        """Test that a missing instance value denies instead of raising."""
        assert evaluator.check(reports_index, reports_requirement, {}.get) is False
        assert evaluator.check(reports_index, reports_requirement) is False

    def test_resource_requirement_granted(self, evaluator):
        """Test requirement without an instance."""
        index = PermissionIndex.build({
            "permissions": [{"rsname": "GROUPS:u", "scopes": ["i", "u", "d", "a"]}]
        })
        requirement = Requirement(
            resource="GROUPS",
            permissions=[Permission.INSERT, Permission.UPDATE, Permission.DELETE, Permission.ARCHIVE]
        )

        assert evaluator.check(index, requirement) is True

    def test_resource_requirement_ignores_resolver(self, evaluator, reports_index):
        """Test that resource checks never ask for an instance."""
        resolver = CountingResolver()
        requirement = Requirement(resource="REPORTS", permissions=["r"])

        assert evaluator.check(reports_index, requirement, resolver) is True
        assert resolver.calls == []

    def test_or_requirement(self, evaluator, reports_index):
        """Test OR combinator within one requirement."""
        requirement = Requirement(
            resource="REPORTS",
            instance="id",
            permissions=["d", "p"],
            combinator=Combinator.OR
        )

        assert evaluator.check(reports_index, requirement, {"id": "2"}.get) is True

    def test_no_grant_denies_everything(self, evaluator):
        """Test that a session without a grant is denied."""
        index = PermissionIndex.build(None)

        assert evaluator.check(index, Requirement("REPORTS", ["r"])) is False
        assert evaluator.check(index, Requirement("REPORTS", ["r"], instance="id"), {"id": "2"}.get) is False
        assert evaluator.check(index, Requirement("REPORTS", ["r"], combinator=Combinator.OR)) is False
        assert index.resources() == frozenset()
        assert index.instances_of("REPORTS") == frozenset()

    def test_check_all_requires_every_requirement(self, evaluator, reports_index):
        """Test that requirements in a set are AND-ed."""
        requirements = RequirementSet.of(
            Requirement("REPORTS", ["r"], instance="id"),
            Requirement("REPORTS", ["x", "u"]),
        )

        assert evaluator.check_all(reports_index, requirements, {"id": "2"}.get) is True

        requirements = RequirementSet.of(
            Requirement("REPORTS", ["r"], instance="id"),
            Requirement("GROUPS", ["r"]),
        )

        assert evaluator.check_all(reports_index, requirements, {"id": "2"}.get) is False

    def test_check_all_short_circuits(self, evaluator, reports_index):
        """Test that evaluation stops at the first unsatisfied requirement."""
        resolver = CountingResolver({"first": "25", "second": "2"})
        requirements = RequirementSet.of(
            Requirement("REPORTS", ["r"], instance="first"),
            Requirement("REPORTS", ["r"], instance="second"),
        )

        assert evaluator.check_all(reports_index, requirements, resolver) is False
        assert resolver.calls == ["first"]

    def test_check_all_evaluates_in_declaration_order(self, evaluator, reports_index):
        """Test resolver call order when every requirement passes."""
        resolver = CountingResolver({"first": "2", "second": "2"})
        requirements = RequirementSet.of(
            Requirement("REPORTS", ["r"], instance="first"),
            Requirement("REPORTS", ["x"], instance="second"),
        )

        assert evaluator.check_all(reports_index, requirements, resolver) is True
        assert resolver.calls == ["first", "second"]
