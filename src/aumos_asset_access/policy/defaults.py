"""Built-in access policy for the license and equipment tracker.

This is the policy the application ships with. It can be replaced by a
YAML matrix file (see :mod:`aumos_asset_access.policy.loader`), which must
be just as complete.

Example
-------
>>> matrix = default_matrix()
>>> matrix.lookup(Role.TECHNICIAN, Resource.CLIENTS).allowed_actions
frozenset()
"""
from __future__ import annotations

from functools import lru_cache

from aumos_asset_access.policy.enums import Action, Resource, Role, Scope
from aumos_asset_access.policy.matrix import PolicyMatrix

_ALL_ACTIONS = frozenset(Action)
_READ_UPDATE = frozenset({Action.READ, Action.UPDATE})
_READ = frozenset({Action.READ})
_NONE: frozenset[Action] = frozenset()

# Technicians maintain the catalogue and the tracked assets, but never
# manage client organisations or user accounts.
_TECHNICIAN_GRANTS: dict[Resource, frozenset[Action]] = {
    Resource.CLIENTS: _NONE,
    Resource.LICENSES: _READ_UPDATE,
    Resource.LICENSE_SUPPLIERS: _READ_UPDATE,
    Resource.LICENSE_TYPES: _READ_UPDATE,
    Resource.EQUIPMENT: _READ_UPDATE,
    Resource.EQUIPMENT_TYPES: _READ_UPDATE,
    Resource.EQUIPMENT_BRANDS: _READ_UPDATE,
    Resource.USERS: _NONE,
    Resource.NOTIFICATIONS: _READ_UPDATE,
    Resource.REPORTS: _READ_UPDATE,
    Resource.DASHBOARD: _READ_UPDATE,
}

# Client users only ever read, and only rows owned by their own client.
_CLIENT_GRANTS: dict[Resource, frozenset[Action]] = {
    Resource.CLIENTS: _NONE,
    Resource.LICENSES: _READ,
    Resource.LICENSE_SUPPLIERS: _NONE,
    Resource.LICENSE_TYPES: _NONE,
    Resource.EQUIPMENT: _READ,
    Resource.EQUIPMENT_TYPES: _NONE,
    Resource.EQUIPMENT_BRANDS: _NONE,
    Resource.USERS: _NONE,
    Resource.NOTIFICATIONS: _READ,
    Resource.REPORTS: _READ,
    Resource.DASHBOARD: _READ,
}


def default_grants() -> dict[Role, dict[Resource, tuple[frozenset[Action], Scope]]]:
    """Return the built-in grants as a role -> resource -> (actions, scope) map."""
    return {
        Role.ADMIN: {resource: (_ALL_ACTIONS, Scope.ALL) for resource in Resource},
        Role.TECHNICIAN: {
            resource: (actions, Scope.ALL)
            for resource, actions in _TECHNICIAN_GRANTS.items()
        },
        Role.CLIENT: {
            resource: (actions, Scope.OWN_CLIENT)
            for resource, actions in _CLIENT_GRANTS.items()
        },
        Role.UNVERIFIED: {resource: (_NONE, Scope.OWN_CLIENT) for resource in Resource},
    }


@lru_cache(maxsize=1)
def default_matrix() -> PolicyMatrix:
    """Return the built-in policy matrix (built once, then shared)."""
    return PolicyMatrix.from_grants(default_grants())


def default_matrix_dict() -> dict[str, object]:
    """Return the built-in matrix in the YAML config schema."""
    return default_matrix().to_dict()
