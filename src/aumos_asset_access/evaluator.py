"""Permission evaluator: the single implementation of every access decision.

All functions here are pure: they read the policy matrix and the
principal, perform no I/O and keep no state, so the UI layer and the
request handlers can call them with the same inputs and get the same
answers.

Three questions are answered:

- :func:`can` -- may this action happen at all (optionally on one record)?
- :func:`can_view_all_data` -- is this principal an elevated viewer?
- :func:`scope_for` -- which rows may queries for this resource return?

Denials are return values, never exceptions. Callers that prefer
exceptions use :mod:`aumos_asset_access.guards`.

Example
-------
>>> admin = Principal(id="u1", role=Role.ADMIN)
>>> can(admin, Action.DELETE, Resource.CLIENTS)
True
>>> client = Principal(id="u2", role=Role.CLIENT, client_id="C1")
>>> can(client, Action.READ, Resource.LICENSES, Record(client_id="C2"))
False
>>> scope_for(client, Resource.LICENSES)
RestrictedToClient(client_id='C1')
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from aumos_asset_access.errors import DenialKind
from aumos_asset_access.identity import Principal, Record
from aumos_asset_access.policy.enums import Action, Resource, Role, Scope
from aumos_asset_access.policy.matrix import PolicyMatrix
from aumos_asset_access.policy.store import default_store
from aumos_asset_access.scoping import (
    UNRESTRICTED,
    Denied,
    RestrictedToClient,
    ScopingDecision,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of a single permission check.

    Attributes
    ----------
    allowed:
        Whether the action is permitted.
    action:
        The action that was checked.
    resource:
        The resource that was checked.
    role:
        The role the principal was evaluated as.
    denial:
        Why the check failed, or ``None`` when allowed.
    reason:
        Internal explanation of the outcome.
    """

    allowed: bool
    action: Action
    resource: Resource
    role: Role
    denial: DenialKind | None = None
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed


@dataclass(frozen=True)
class PermissionSummary:
    """Coarse capabilities used to decide which UI controls to show.

    ``client_access`` is the client the principal's data view is locked
    to, or ``None`` when it is not locked to one.
    """

    can_manage_clients: bool = False
    can_manage_licenses: bool = False
    can_manage_equipment: bool = False
    can_view_reports: bool = False
    can_export_reports: bool = False
    can_manage_users: bool = False
    can_view_all_data: bool = False
    client_access: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "can_manage_clients": self.can_manage_clients,
            "can_manage_licenses": self.can_manage_licenses,
            "can_manage_equipment": self.can_manage_equipment,
            "can_view_reports": self.can_view_reports,
            "can_export_reports": self.can_export_reports,
            "can_manage_users": self.can_manage_users,
            "can_view_all_data": self.can_view_all_data,
            "client_access": self.client_access,
        }


NO_PERMISSIONS = PermissionSummary()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _matrix(matrix: PolicyMatrix | None) -> PolicyMatrix:
    return matrix if matrix is not None else default_store().current()


def _require_enums(action: Action, resource: Resource) -> None:
    if not isinstance(action, Action):
        raise TypeError(f"action must be an Action; got {action!r}")
    if not isinstance(resource, Resource):
        raise TypeError(f"resource must be a Resource; got {resource!r}")


def _deny(
    action: Action,
    resource: Resource,
    role: Role,
    kind: DenialKind,
    reason: str,
) -> AccessDecision:
    logger.debug(
        "Access DENY: role=%s action=%s resource=%s kind=%s (%s)",
        role.value,
        action.value,
        resource.value,
        kind.value,
        reason,
    )
    return AccessDecision(False, action, resource, role, kind, reason)


def _allow(action: Action, resource: Resource, role: Role, reason: str) -> AccessDecision:
    logger.debug(
        "Access ALLOW: role=%s action=%s resource=%s (%s)",
        role.value,
        action.value,
        resource.value,
        reason,
    )
    return AccessDecision(True, action, resource, role, None, reason)


# ---------------------------------------------------------------------------
# Core operations
# ---------------------------------------------------------------------------


def check(
    principal: Principal,
    action: Action,
    resource: Resource,
    instance: Record | None = None,
    matrix: PolicyMatrix | None = None,
) -> AccessDecision:
    """Decide whether *principal* may perform *action* on *resource*.

    Without *instance* this is a list-level check: for tenant-scoped rules
    it answers whether the resource is reachable at all, and the caller
    must still filter rows with :func:`scope_for`. With *instance* the
    record must belong to the principal's client.

    Raises
    ------
    TypeError
        If *action* or *resource* is not an enum member.
    """
    _require_enums(action, resource)
    role = principal.effective_role

    if role is Role.UNVERIFIED:
        return _deny(action, resource, role, DenialKind.FORBIDDEN, "account not verified")

    rule = _matrix(matrix).lookup(role, resource)
    if not rule.allows(action):
        return _deny(action, resource, role, DenialKind.FORBIDDEN, "action not granted")

    if rule.scope is Scope.ALL:
        return _allow(action, resource, role, "unrestricted scope")

    if instance is None:
        return _allow(action, resource, role, "list-level check, rows filtered by caller")

    if principal.client_id is None:
        logger.warning(
            "Principal %s has role %s but no client_id; denying %s on %s",
            principal.id,
            role.value,
            action.value,
            resource.value,
        )
        return _deny(action, resource, role, DenialKind.SCOPE_DENIED, "principal has no client")

    if instance.client_id == principal.client_id:
        return _allow(action, resource, role, "record owned by principal's client")
    return _deny(action, resource, role, DenialKind.FORBIDDEN, "record owned by another client")


def can(
    principal: Principal,
    action: Action,
    resource: Resource,
    instance: Record | None = None,
    matrix: PolicyMatrix | None = None,
) -> bool:
    """Return True if *principal* may perform *action* on *resource*.

    See :func:`check` for the rules applied.
    """
    return check(principal, action, resource, instance, matrix).allowed


def can_view_all_data(
    principal: Principal,
    resource: Resource = Resource.DASHBOARD,
    matrix: PolicyMatrix | None = None,
) -> bool:
    """Return True if *principal* reads *resource* across every client.

    With the built-in policy this holds for administrators and
    technicians, whatever the reference resource.
    """
    if not isinstance(resource, Resource):
        raise TypeError(f"resource must be a Resource; got {resource!r}")
    role = principal.effective_role
    if role is Role.UNVERIFIED:
        return False
    rule = _matrix(matrix).lookup(role, resource)
    return rule.scope is Scope.ALL and rule.allows(Action.READ)


def scope_for(
    principal: Principal,
    resource: Resource,
    action: Action = Action.READ,
    matrix: PolicyMatrix | None = None,
) -> ScopingDecision:
    """Return the row filter queries for *resource* must apply.

    - ``Unrestricted`` when the rule's scope is ``ALL``.
    - ``RestrictedToClient(principal.client_id)`` for tenant-scoped rules.
    - ``Denied`` when the principal has no client although the rule is
      tenant-scoped, when the account is unverified, or when *action* is
      not granted at all. There is no fallback to ``Unrestricted``.
    """
    _require_enums(action, resource)
    role = principal.effective_role

    if role is Role.UNVERIFIED:
        return Denied(kind=DenialKind.FORBIDDEN, detail="account not verified")

    rule = _matrix(matrix).lookup(role, resource)

    if rule.scope is Scope.OWN_CLIENT and principal.client_id is None:
        logger.warning(
            "Principal %s has role %s but no client_id; %s scope denied",
            principal.id,
            role.value,
            resource.value,
        )
        return Denied(kind=DenialKind.SCOPE_DENIED, detail="principal has no client")

    if not rule.allows(action):
        return Denied(kind=DenialKind.FORBIDDEN, detail="action not granted")

    if rule.scope is Scope.ALL:
        return UNRESTRICTED
    return RestrictedToClient(principal.client_id)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Derived operations
# ---------------------------------------------------------------------------


def can_access_own_profile(principal: Principal, action: Action, user_id: str | None) -> bool:
    """Return True if *principal* may act on its own user profile.

    Every principal, including an unverified one, may read its own
    profile. Verified principals may also update it. This exception is
    fixed and cannot be granted or revoked through the matrix.
    """
    if not isinstance(action, Action):
        raise TypeError(f"action must be an Action; got {action!r}")
    if user_id is None or user_id != principal.id:
        return False
    if action is Action.READ:
        return True
    return action is Action.UPDATE and principal.effective_role is not Role.UNVERIFIED


def can_access_client(
    principal: Principal,
    client_id: str,
    resource: Resource = Resource.DASHBOARD,
    matrix: PolicyMatrix | None = None,
) -> bool:
    """Return True if data belonging to *client_id* is visible to *principal*."""
    return scope_for(principal, resource, matrix=matrix).allows_client(client_id)


def can_manage(
    principal: Principal,
    resource: Resource,
    matrix: PolicyMatrix | None = None,
) -> bool:
    """Return True if any of create, update or delete is granted on *resource*."""
    return any(can(principal, action, resource, matrix=matrix) for action in Action.mutations())


def can_manage_users(principal: Principal, matrix: PolicyMatrix | None = None) -> bool:
    return can_manage(principal, Resource.USERS, matrix)


def can_export_reports(principal: Principal, matrix: PolicyMatrix | None = None) -> bool:
    """Return True if *principal* may export reports spanning every client."""
    return can_view_all_data(principal, Resource.REPORTS, matrix)


def permissions_summary(
    principal: Principal | None,
    matrix: PolicyMatrix | None = None,
) -> PermissionSummary:
    """Return the coarse capability summary of *principal*.

    An anonymous caller (``None``) gets :data:`NO_PERMISSIONS`.
    """
    if principal is None:
        return NO_PERMISSIONS
    view_all = can_view_all_data(principal, matrix=matrix)
    client_access = None
    if not view_all:
        decision = scope_for(principal, Resource.DASHBOARD, matrix=matrix)
        if isinstance(decision, RestrictedToClient):
            client_access = decision.client_id
    return PermissionSummary(
        can_manage_clients=can_manage(principal, Resource.CLIENTS, matrix),
        can_manage_licenses=can_manage(principal, Resource.LICENSES, matrix),
        can_manage_equipment=can_manage(principal, Resource.EQUIPMENT, matrix),
        can_view_reports=can(principal, Action.READ, Resource.REPORTS, matrix=matrix),
        can_export_reports=can_export_reports(principal, matrix),
        can_manage_users=can_manage_users(principal, matrix),
        can_view_all_data=view_all,
        client_access=client_access,
    )


# ---------------------------------------------------------------------------
# Object facade
# ---------------------------------------------------------------------------


class PermissionChecker:
    """Binds a principal and a matrix snapshot to the evaluator functions.

    The matrix snapshot is taken at construction, so every answer given by
    one checker comes from the same policy even if the store is swapped
    meanwhile. Checkers are cheap; build one per request.

    Parameters
    ----------
    principal:
        The principal to evaluate.
    matrix:
        Policy to evaluate against. Defaults to the active snapshot of the
        process-wide store.
    """

    def __init__(self, principal: Principal, matrix: PolicyMatrix | None = None) -> None:
        self._principal = principal
        self._matrix = _matrix(matrix)

    @property
    def principal(self) -> Principal:
        return self._principal

    @property
    def matrix(self) -> PolicyMatrix:
        return self._matrix

    def check(
        self, action: Action, resource: Resource, instance: Record | None = None
    ) -> AccessDecision:
        return check(self._principal, action, resource, instance, self._matrix)

    def can(self, action: Action, resource: Resource, instance: Record | None = None) -> bool:
        return can(self._principal, action, resource, instance, self._matrix)

    def can_view_all_data(self, resource: Resource = Resource.DASHBOARD) -> bool:
        return can_view_all_data(self._principal, resource, self._matrix)

    def scope_for(self, resource: Resource, action: Action = Action.READ) -> ScopingDecision:
        return scope_for(self._principal, resource, action, self._matrix)

    def can_access_client(self, client_id: str) -> bool:
        return can_access_client(self._principal, client_id, matrix=self._matrix)

    def can_access_own_profile(self, action: Action, user_id: str | None) -> bool:
        return can_access_own_profile(self._principal, action, user_id)

    def can_manage(self, resource: Resource) -> bool:
        return can_manage(self._principal, resource, self._matrix)

    def can_manage_users(self) -> bool:
        return can_manage_users(self._principal, self._matrix)

    def can_export_reports(self) -> bool:
        return can_export_reports(self._principal, self._matrix)

    def summary(self) -> PermissionSummary:
        return permissions_summary(self._principal, self._matrix)

    def __repr__(self) -> str:
        return f"PermissionChecker(principal={self._principal.id!r}, role={self._principal.role.value!r})"
