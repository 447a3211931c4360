"""aumos-asset-access -- role and client-scoped access control for license and equipment tracking.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import aumos_asset_access as access
>>> access.__version__
'0.1.0'
>>> principal = access.Principal(id="u1", role=access.Role.CLIENT, client_id="C1")
>>> access.can(principal, access.Action.READ, access.Resource.LICENSES)
True
>>> access.scope_for(principal, access.Resource.LICENSES)
RestrictedToClient(client_id='C1')
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------
from aumos_asset_access.policy import (
    Action,
    MatrixError,
    MatrixIncompleteError,
    MatrixStore,
    PolicyConfigError,
    PolicyLoader,
    PolicyMatrix,
    PolicyRule,
    Resource,
    Role,
    Scope,
    default_matrix,
    default_store,
)

# ---------------------------------------------------------------------------
# Identity and errors
# ---------------------------------------------------------------------------
from aumos_asset_access.identity import Principal, Record, resolve_principal
from aumos_asset_access.errors import (
    AccessError,
    DenialKind,
    Forbidden,
    ScopeDenied,
    Unauthenticated,
)

# ---------------------------------------------------------------------------
# Scoping
# ---------------------------------------------------------------------------
from aumos_asset_access.scoping import (
    Denied,
    RestrictedToClient,
    ScopingDecision,
    Unrestricted,
    apply_to_query,
    filter_rows,
    narrow,
)

# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------
from aumos_asset_access.evaluator import (
    AccessDecision,
    PermissionChecker,
    PermissionSummary,
    can,
    can_access_client,
    can_access_own_profile,
    can_export_reports,
    can_manage,
    can_manage_users,
    can_view_all_data,
    check,
    permissions_summary,
    scope_for,
)

# ---------------------------------------------------------------------------
# Integration
# ---------------------------------------------------------------------------
from aumos_asset_access.guards import RequestGuard, ScopedExport, require_permission
from aumos_asset_access.ui import UiPermissions, use_permissions
from aumos_asset_access.config import AccessConfig, ConfigLoader, ExportConfig

__all__ = [
    "__version__",
    # Policy
    "Action",
    "MatrixError",
    "MatrixIncompleteError",
    "MatrixStore",
    "PolicyConfigError",
    "PolicyLoader",
    "PolicyMatrix",
    "PolicyRule",
    "Resource",
    "Role",
    "Scope",
    "default_matrix",
    "default_store",
    # Identity and errors
    "AccessError",
    "DenialKind",
    "Forbidden",
    "Principal",
    "Record",
    "ScopeDenied",
    "Unauthenticated",
    "resolve_principal",
    # Scoping
    "Denied",
    "RestrictedToClient",
    "ScopingDecision",
    "Unrestricted",
    "apply_to_query",
    "filter_rows",
    "narrow",
    # Evaluator
    "AccessDecision",
    "PermissionChecker",
    "PermissionSummary",
    "can",
    "can_access_client",
    "can_access_own_profile",
    "can_export_reports",
    "can_manage",
    "can_manage_users",
    "can_view_all_data",
    "check",
    "permissions_summary",
    "scope_for",
    # Integration
    "AccessConfig",
    "ConfigLoader",
    "ExportConfig",
    "RequestGuard",
    "ScopedExport",
    "UiPermissions",
    "require_permission",
    "use_permissions",
]
