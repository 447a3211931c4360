"""Tests for PolicyMatrix construction and the built-in policy."""
from __future__ import annotations

import pytest

from aumos_asset_access.policy.defaults import default_matrix, default_matrix_dict
from aumos_asset_access.policy.enums import Action, Resource, Role, Scope
from aumos_asset_access.policy.matrix import (
    MatrixError,
    MatrixIncompleteError,
    PolicyMatrix,
)
from aumos_asset_access.policy.rules import PolicyRule


def _complete_rules() -> list[PolicyRule]:
    return [PolicyRule.deny_all(role, resource) for role in Role for resource in Resource]


# ---------------------------------------------------------------------------
# Construction-time validation
# ---------------------------------------------------------------------------

class TestMatrixValidation:
    def test_complete_matrix_builds(self) -> None:
        matrix = PolicyMatrix(_complete_rules())
        assert len(matrix) == len(Role) * len(Resource)

    def test_missing_rule_raises(self) -> None:
        rules = [
            r for r in _complete_rules()
            if r.key != (Role.CLIENT, Resource.DASHBOARD)
        ]
        with pytest.raises(MatrixIncompleteError) as exc_info:
            PolicyMatrix(rules)
        assert exc_info.value.missing == [(Role.CLIENT, Resource.DASHBOARD)]
        assert "client/dashboard" in str(exc_info.value)

    def test_empty_matrix_lists_every_pair(self) -> None:
        with pytest.raises(MatrixIncompleteError) as exc_info:
            PolicyMatrix([])
        assert len(exc_info.value.missing) == len(Role) * len(Resource)

    def test_duplicate_rule_raises(self) -> None:
        rules = _complete_rules() + [PolicyRule.deny_all(Role.ADMIN, Resource.USERS)]
        with pytest.raises(MatrixError, match="Duplicate"):
            PolicyMatrix(rules)

    def test_unverified_grant_rejected(self) -> None:
        rules = [
            r for r in _complete_rules()
            if r.key != (Role.UNVERIFIED, Resource.DASHBOARD)
        ]
        rules.append(
            PolicyRule(Role.UNVERIFIED, Resource.DASHBOARD, frozenset({Action.READ}))
        )
        with pytest.raises(MatrixError, match="unverified"):
            PolicyMatrix(rules)

    def test_incomplete_error_is_matrix_error(self) -> None:
        assert issubclass(MatrixIncompleteError, MatrixError)
        assert issubclass(MatrixError, ValueError)


class TestFromGrants:
    def test_fills_missing_pairs_with_no_access(self) -> None:
        matrix = PolicyMatrix.from_grants(
            {Role.ADMIN: {Resource.LICENSES: (frozenset(Action), Scope.ALL)}}
        )
        assert matrix.lookup(Role.ADMIN, Resource.LICENSES).allowed_actions == frozenset(Action)
        assert matrix.lookup(Role.ADMIN, Resource.USERS).allowed_actions == frozenset()
        assert matrix.lookup(Role.CLIENT, Resource.LICENSES).allowed_actions == frozenset()

    def test_filled_scope_follows_role(self) -> None:
        matrix = PolicyMatrix.from_grants(
            {Role.CLIENT: {Resource.LICENSES: ({Action.READ}, Scope.OWN_CLIENT)}}
        )
        assert matrix.lookup(Role.CLIENT, Resource.USERS).scope is Scope.OWN_CLIENT


# ---------------------------------------------------------------------------
# Totality and accessors
# ---------------------------------------------------------------------------

class TestMatrixAccessors:
    def test_lookup_is_total(self) -> None:
        matrix = default_matrix()
        for role in Role:
            for resource in Resource:
                rule = matrix.lookup(role, resource)
                assert rule.key == (role, resource)

    def test_iteration_order(self) -> None:
        rules = list(default_matrix())
        assert rules[0].key == (Role.ADMIN, Resource.CLIENTS)
        assert rules[-1].key == (Role.UNVERIFIED, Resource.DASHBOARD)

    def test_rules_for_role(self) -> None:
        rules = default_matrix().rules_for_role(Role.CLIENT)
        assert [r.resource for r in rules] == list(Resource)

    def test_equality(self) -> None:
        assert PolicyMatrix(list(default_matrix())) == default_matrix()
        assert PolicyMatrix(_complete_rules()) != default_matrix()

    def test_summary(self) -> None:
        summary = default_matrix().summary()
        assert summary["rule_count"] == 44
        assert summary["grants_per_role"]["unverified"] == 0  # type: ignore[index]
        assert summary["grants_per_role"]["admin"] == 44  # type: ignore[index]

    def test_to_dict_schema(self) -> None:
        data = default_matrix_dict()
        assert data["version"] == "1.0"
        assert len(data["rules"]) == 44  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Built-in policy
# ---------------------------------------------------------------------------

class TestDefaultPolicy:
    def test_admin_everything_unscoped(self) -> None:
        for rule in default_matrix().rules_for_role(Role.ADMIN):
            assert rule.allowed_actions == frozenset(Action)
            assert rule.scope is Scope.ALL

    @pytest.mark.parametrize(
        "resource",
        [
            Resource.LICENSES,
            Resource.EQUIPMENT,
            Resource.EQUIPMENT_TYPES,
            Resource.EQUIPMENT_BRANDS,
            Resource.LICENSE_SUPPLIERS,
            Resource.LICENSE_TYPES,
            Resource.NOTIFICATIONS,
            Resource.REPORTS,
            Resource.DASHBOARD,
        ],
    )
    def test_technician_reads_and_updates(self, resource: Resource) -> None:
        rule = default_matrix().lookup(Role.TECHNICIAN, resource)
        assert rule.allowed_actions == frozenset({Action.READ, Action.UPDATE})
        assert rule.scope is Scope.ALL

    @pytest.mark.parametrize("resource", [Resource.CLIENTS, Resource.USERS])
    def test_technician_no_client_or_user_management(self, resource: Resource) -> None:
        assert default_matrix().lookup(Role.TECHNICIAN, resource).allowed_actions == frozenset()

    def test_client_read_only_own_client(self) -> None:
        matrix = default_matrix()
        readable = {
            Resource.LICENSES,
            Resource.EQUIPMENT,
            Resource.NOTIFICATIONS,
            Resource.REPORTS,
            Resource.DASHBOARD,
        }
        for rule in matrix.rules_for_role(Role.CLIENT):
            assert rule.scope is Scope.OWN_CLIENT
            expected = frozenset({Action.READ}) if rule.resource in readable else frozenset()
            assert rule.allowed_actions == expected, rule.resource

    def test_unverified_has_nothing(self) -> None:
        for rule in default_matrix().rules_for_role(Role.UNVERIFIED):
            assert rule.allowed_actions == frozenset()

    def test_default_matrix_is_cached(self) -> None:
        assert default_matrix() is default_matrix()
