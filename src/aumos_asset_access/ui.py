"""Permission facade for the rendering layer.

Pages and components ask :func:`use_permissions` which controls to
render. The answers come from :mod:`aumos_asset_access.evaluator`, the same
code the request guards enforce with, so a button is never shown for an
action the server would refuse (and vice versa).

Hiding a control is cosmetic. Every action is still enforced server-side.

Example
-------
::

    perms = use_permissions(current_principal)
    if perms.can(Action.CREATE, Resource.LICENSES):
        render_new_license_button()
    for section in perms.navigation():
        render_link(section.label, section.path)
"""
from __future__ import annotations

from dataclasses import dataclass

from aumos_asset_access import evaluator
from aumos_asset_access.errors import DenialKind
from aumos_asset_access.evaluator import NO_PERMISSIONS, PermissionSummary
from aumos_asset_access.identity import Principal, Record
from aumos_asset_access.policy.enums import Action, Resource
from aumos_asset_access.policy.matrix import PolicyMatrix
from aumos_asset_access.policy.store import default_store
from aumos_asset_access.scoping import Denied, ScopingDecision


@dataclass(frozen=True)
class NavigationSection:
    """One entry of the application's main navigation."""

    label: str
    path: str
    resource: Resource


NAVIGATION: tuple[NavigationSection, ...] = (
    NavigationSection("Dashboard", "/dashboard", Resource.DASHBOARD),
    NavigationSection("Clients", "/clients", Resource.CLIENTS),
    NavigationSection("Licenses", "/licenses", Resource.LICENSES),
    NavigationSection("Equipment", "/equipment", Resource.EQUIPMENT),
    NavigationSection("Notifications", "/notifications", Resource.NOTIFICATIONS),
    NavigationSection("Reports", "/reports", Resource.REPORTS),
    NavigationSection("Users", "/users", Resource.USERS),
)


class UiPermissions:
    """Permission answers for one signed-in (or anonymous) user.

    An anonymous user (``principal=None``) is refused everything.
    """

    def __init__(self, principal: Principal | None, matrix: PolicyMatrix | None = None) -> None:
        self._principal = principal
        self._matrix = matrix if matrix is not None else default_store().current()

    @property
    def principal(self) -> Principal | None:
        return self._principal

    @property
    def is_anonymous(self) -> bool:
        return self._principal is None

    def can(self, action: Action, resource: Resource, instance: Record | None = None) -> bool:
        if self._principal is None:
            return False
        return evaluator.can(self._principal, action, resource, instance, self._matrix)

    def can_view_all_data(self) -> bool:
        if self._principal is None:
            return False
        return evaluator.can_view_all_data(self._principal, matrix=self._matrix)

    def can_access_client(self, client_id: str) -> bool:
        if self._principal is None:
            return False
        return evaluator.can_access_client(self._principal, client_id, matrix=self._matrix)

    def can_manage_users(self) -> bool:
        if self._principal is None:
            return False
        return evaluator.can_manage_users(self._principal, self._matrix)

    def can_export_reports(self) -> bool:
        if self._principal is None:
            return False
        return evaluator.can_export_reports(self._principal, self._matrix)

    def can_edit_profile(self, user_id: str) -> bool:
        if self._principal is None:
            return False
        return evaluator.can_access_own_profile(self._principal, Action.UPDATE, user_id) or self.can(
            Action.UPDATE, Resource.USERS, Record(id=user_id)
        )

    def summary(self) -> PermissionSummary:
        if self._principal is None:
            return NO_PERMISSIONS
        return evaluator.permissions_summary(self._principal, self._matrix)

    def controls(self, resource: Resource, instance: Record | None = None) -> dict[Action, bool]:
        """Return which action controls to render for *resource*."""
        return {action: self.can(action, resource, instance) for action in Action}

    def navigation(self) -> list[NavigationSection]:
        """Return the navigation sections the user can open."""
        return [s for s in NAVIGATION if self.can(Action.READ, s.resource)]

    def statistics_scope(self) -> ScopingDecision:
        """Return the scope of the dashboard statistics to request.

        Elevated viewers get cross-client aggregates; client users get the
        figures of their own client; anyone else gets nothing.
        """
        if self._principal is None:
            return Denied(kind=DenialKind.UNAUTHENTICATED, detail="anonymous user")
        return evaluator.scope_for(self._principal, Resource.DASHBOARD, matrix=self._matrix)


def use_permissions(
    principal: Principal | None,
    matrix: PolicyMatrix | None = None,
) -> UiPermissions:
    """Return the permission facade for the current user."""
    return UiPermissions(principal, matrix)
