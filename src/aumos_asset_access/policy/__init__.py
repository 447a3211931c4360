"""Static access policy: vocabularies, rules, the total matrix and its loaders.

Example
-------
::

    from aumos_asset_access.policy import Resource, Role, default_matrix

    rule = default_matrix().lookup(Role.CLIENT, Resource.EQUIPMENT)
    assert rule.scope.value == "own_client"
"""
from __future__ import annotations

from aumos_asset_access.policy.defaults import (
    default_grants,
    default_matrix,
    default_matrix_dict,
)
from aumos_asset_access.policy.enums import Action, Resource, Role, Scope
from aumos_asset_access.policy.loader import PolicyConfigError, PolicyLoader
from aumos_asset_access.policy.matrix import (
    MatrixError,
    MatrixIncompleteError,
    PolicyMatrix,
)
from aumos_asset_access.policy.rules import PolicyRule
from aumos_asset_access.policy.store import MatrixStore, default_store

__all__ = [
    # Vocabularies
    "Action",
    "Resource",
    "Role",
    "Scope",
    # Matrix
    "MatrixError",
    "MatrixIncompleteError",
    "PolicyMatrix",
    "PolicyRule",
    "default_grants",
    "default_matrix",
    "default_matrix_dict",
    # Loading
    "MatrixStore",
    "PolicyConfigError",
    "PolicyLoader",
    "default_store",
]
