"""Total policy matrix mapping (role, resource) pairs to rules.

The matrix is validated when it is built: every combination of the
declared ``Role`` and ``Resource`` enums must have exactly one rule.
A missing row is a programming error and aborts construction instead of
quietly behaving as a deny (or, worse, an allow) at request time.

Example
-------
::

    matrix = PolicyMatrix(rules)            # raises MatrixIncompleteError on gaps
    rule = matrix.lookup(Role.CLIENT, Resource.LICENSES)
    assert rule.scope is Scope.OWN_CLIENT
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator
from types import MappingProxyType

from aumos_asset_access.policy.enums import Action, Resource, Role, Scope
from aumos_asset_access.policy.rules import PolicyRule


class MatrixError(ValueError):
    """Raised when a policy matrix is structurally invalid."""


class MatrixIncompleteError(MatrixError):
    """Raised when one or more (role, resource) combinations have no rule.

    Attributes
    ----------
    missing:
        The uncovered (role, resource) pairs, sorted.
    """

    def __init__(self, missing: list[tuple[Role, Resource]]) -> None:
        self.missing = missing
        listed = ", ".join(f"{role.value}/{resource.value}" for role, resource in missing)
        super().__init__(f"Policy matrix is missing {len(missing)} rule(s): {listed}")


class PolicyMatrix:
    """Immutable, total table of PolicyRule entries.

    Parameters
    ----------
    rules:
        One rule per (role, resource) combination.

    Raises
    ------
    MatrixIncompleteError
        If any combination of ``Role`` x ``Resource`` is not covered.
    MatrixError
        If a combination is declared twice, or if a rule grants any action
        to ``Role.UNVERIFIED``.
    """

    def __init__(self, rules: Iterable[PolicyRule]) -> None:
        table: dict[tuple[Role, Resource], PolicyRule] = {}
        for rule in rules:
            if rule.key in table:
                raise MatrixError(
                    f"Duplicate rule for {rule.role.value}/{rule.resource.value}."
                )
            if rule.role is Role.UNVERIFIED and rule.allowed_actions:
                raise MatrixError(
                    f"Role 'unverified' cannot be granted actions "
                    f"(resource {rule.resource.value!r})."
                )
            table[rule.key] = rule

        missing = [
            (role, resource)
            for role in Role
            for resource in Resource
            if (role, resource) not in table
        ]
        if missing:
            raise MatrixIncompleteError(missing)

        self._table = MappingProxyType(table)

    @classmethod
    def from_grants(
        cls,
        grants: dict[Role, dict[Resource, tuple[Iterable[Action], Scope]]],
    ) -> PolicyMatrix:
        """Build a matrix from a nested role -> resource -> grant mapping.

        Combinations absent from *grants* become explicit no-access rules.
        The scope of a filled-in rule is ``OWN_CLIENT`` for roles that are
        tenant-scoped elsewhere in *grants*, ``ALL`` otherwise.
        """
        rules: list[PolicyRule] = []
        for role in Role:
            role_grants = grants.get(role, {})
            scopes = {scope for _, scope in role_grants.values()}
            fallback_scope = Scope.OWN_CLIENT if Scope.OWN_CLIENT in scopes else Scope.ALL
            for resource in Resource:
                if resource in role_grants:
                    actions, scope = role_grants[resource]
                    rules.append(
                        PolicyRule(role, resource, frozenset(actions), scope)
                    )
                else:
                    rules.append(PolicyRule(role, resource, frozenset(), fallback_scope))
        return cls(rules)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def lookup(self, role: Role, resource: Resource) -> PolicyRule:
        """Return the rule for (role, resource). Total over the enums."""
        return self._table[(role, resource)]

    def rules_for_role(self, role: Role) -> list[PolicyRule]:
        """Return the rules of *role* in ``Resource`` declaration order."""
        return [self._table[(role, resource)] for resource in Resource]

    def to_dict(self) -> dict[str, object]:
        """Return the matrix in the YAML config schema."""
        return {
            "version": "1.0",
            "rules": [rule.to_dict() for rule in self],
        }

    def summary(self) -> dict[str, object]:
        """Return a plain dict of granted action counts per role."""
        per_role: dict[str, int] = {}
        for rule in self:
            per_role[rule.role.value] = per_role.get(rule.role.value, 0) + len(
                rule.allowed_actions
            )
        return {
            "rule_count": len(self),
            "grants_per_role": per_role,
        }

    def __iter__(self) -> Iterator[PolicyRule]:
        for role in Role:
            for resource in Resource:
                yield self._table[(role, resource)]

    def __len__(self) -> int:
        return len(self._table)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PolicyMatrix):
            return NotImplemented
        return dict(self._table) == dict(other._table)

    def __hash__(self) -> int:
        return hash(frozenset(self._table.values()))

    def __repr__(self) -> str:
        return f"PolicyMatrix(rules={len(self)})"
