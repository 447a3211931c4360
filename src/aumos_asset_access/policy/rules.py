"""Single (role, resource) entry of the policy matrix.

Example
-------
>>> rule = PolicyRule.from_dict(
...     {"role": "client", "resource": "licenses", "actions": ["read"], "scope": "own_client"}
... )
>>> rule.allows(Action.READ)
True
"""
from __future__ import annotations

from dataclasses import dataclass, field

from aumos_asset_access.policy.enums import Action, Resource, Role, Scope


@dataclass(frozen=True)
class PolicyRule:
    """What one role may do to one resource, and over which rows.

    Attributes
    ----------
    role:
        The role this rule applies to.
    resource:
        The protected resource.
    allowed_actions:
        Actions the role may perform. Empty means no access.
    scope:
        ``Scope.ALL`` for unfiltered access, ``Scope.OWN_CLIENT`` when
        callers must restrict rows to the principal's client.
    """

    role: Role
    resource: Resource
    allowed_actions: frozenset[Action] = field(default_factory=frozenset)
    scope: Scope = Scope.ALL

    @classmethod
    def deny_all(cls, role: Role, resource: Resource) -> PolicyRule:
        """Return an explicit no-access rule for (role, resource)."""
        return cls(role=role, resource=resource)

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> PolicyRule:
        """Build a PolicyRule from a plain dictionary.

        Parameters
        ----------
        data:
            Dictionary with keys ``role``, ``resource``, ``actions``
            (optional, default empty) and ``scope`` (optional, default
            ``"all"``).

        Raises
        ------
        ValueError
            If a key is missing or a value is not a member of its enum.
        """
        if "role" not in data or "resource" not in data:
            raise ValueError("PolicyRule requires both 'role' and 'resource'.")

        raw_actions = data.get("actions", [])
        if isinstance(raw_actions, str) or not isinstance(raw_actions, (list, tuple, set, frozenset)):
            raise ValueError(
                f"PolicyRule.actions must be a list; got {raw_actions!r}."
            )
        if "*" in raw_actions:
            actions = frozenset(Action)
        else:
            actions = frozenset(Action(a) for a in raw_actions)

        return cls(
            role=Role.parse(data["role"]),  # type: ignore[arg-type]
            resource=Resource(data["resource"]),
            allowed_actions=actions,
            scope=Scope(data.get("scope", Scope.ALL.value)),
        )

    def to_dict(self) -> dict[str, object]:
        ordered = [a.value for a in Action if a in self.allowed_actions]
        return {
            "role": self.role.value,
            "resource": self.resource.value,
            "actions": ordered,
            "scope": self.scope.value,
        }

    def allows(self, action: Action) -> bool:
        return action in self.allowed_actions

    @property
    def key(self) -> tuple[Role, Resource]:
        return (self.role, self.resource)
