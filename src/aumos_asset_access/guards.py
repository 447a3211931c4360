"""Request-handling integration of the evaluator.

Route handlers use :class:`RequestGuard` to turn evaluator answers into
exceptions before touching any data, and :class:`ScopedExport` to pin one
scoping decision for the whole lifetime of an export job.

Handlers catch :class:`~aumos_asset_access.errors.AccessError` once and
answer with ``exc.status_code`` and ``exc.to_response()``.

Example
-------
::

    guard = RequestGuard()

    def list_licenses(session_profile, params, db):
        try:
            principal = guard.authenticate(session_profile)
            decision = guard.scope(principal, Resource.LICENSES)
        except AccessError as exc:
            return exc.status_code, exc.to_response()
        decision = narrow(decision, params.get("client_id"))
        query = apply_to_query(db.table("licenses").select("*"), decision)
        return 200, {"data": [] if query is None else query.execute()}
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import TypeVar

from aumos_asset_access import evaluator
from aumos_asset_access.config import ExportConfig
from aumos_asset_access.errors import (
    DenialKind,
    Forbidden,
    ScopeDenied,
    Unauthenticated,
)
from aumos_asset_access.identity import Principal, Record, resolve_principal
from aumos_asset_access.policy.enums import Action, Resource
from aumos_asset_access.policy.matrix import PolicyMatrix
from aumos_asset_access.policy.store import default_store
from aumos_asset_access.scoping import (
    Denied,
    RestrictedToClient,
    ScopingDecision,
    SupportsEq,
    Unrestricted,
    apply_to_query,
    filter_rows,
    narrow,
)

logger = logging.getLogger(__name__)

_T = TypeVar("_T")
_Q = TypeVar("_Q", bound=SupportsEq)


class RequestGuard:
    """Enforces access decisions for request handlers.

    Parameters
    ----------
    matrix:
        Policy to enforce. When omitted, each call uses the active
        snapshot of the process-wide store.
    """

    def __init__(self, matrix: PolicyMatrix | None = None) -> None:
        self._matrix = matrix

    def _current(self) -> PolicyMatrix:
        return self._matrix if self._matrix is not None else default_store().current()

    def authenticate(self, profile: Mapping[str, object] | None) -> Principal:
        """Resolve the session profile, raising ``Unauthenticated`` if absent."""
        return resolve_principal(profile)

    def authorize(
        self,
        principal: Principal | None,
        action: Action,
        resource: Resource,
        instance: Record | None = None,
    ) -> Principal:
        """Return *principal* if the action is allowed.

        Raises
        ------
        Unauthenticated
            If *principal* is ``None``.
        ScopeDenied
            If the principal lacks the client its role is scoped to.
        Forbidden
            For any other denial.
        """
        if principal is None:
            raise Unauthenticated()
        return self._authorize(principal, action, resource, instance, self._current())

    def _authorize(
        self,
        principal: Principal,
        action: Action,
        resource: Resource,
        instance: Record | None,
        matrix: PolicyMatrix,
    ) -> Principal:
        decision = evaluator.check(principal, action, resource, instance, matrix)
        if decision.allowed:
            return principal
        logger.info(
            "Rejected %s on %s for principal %s: %s",
            action.value,
            resource.value,
            principal.id,
            decision.reason,
        )
        if decision.denial is DenialKind.SCOPE_DENIED:
            raise ScopeDenied(decision.reason)
        raise Forbidden(decision.reason)

    def authorize_profile(
        self,
        principal: Principal | None,
        action: Action,
        user_id: str,
    ) -> Principal:
        """Authorize *action* on the user record *user_id*.

        The principal's own profile is always readable (and updatable once
        verified); other profiles go through the matrix.
        """
        if principal is None:
            raise Unauthenticated()
        if evaluator.can_access_own_profile(principal, action, user_id):
            return principal
        return self.authorize(principal, action, Resource.USERS, Record(id=user_id))

    def scope(
        self,
        principal: Principal | None,
        resource: Resource,
        action: Action = Action.READ,
    ) -> Unrestricted | RestrictedToClient:
        """Return the row filter for a read, list or export of *resource*.

        Raises
        ------
        Unauthenticated
            If *principal* is ``None``.
        ScopeDenied
            If the decision is ``Denied`` for lack of a client.
        Forbidden
            If the action is not granted at all.
        """
        if principal is None:
            raise Unauthenticated()
        decision = evaluator.scope_for(principal, resource, action, self._current())
        if isinstance(decision, Denied):
            logger.info(
                "Scope denied for principal %s on %s: %s",
                principal.id,
                resource.value,
                decision.detail,
            )
            if decision.kind is DenialKind.SCOPE_DENIED:
                raise ScopeDenied(decision.detail)
            raise Forbidden(decision.detail)
        return decision

    def fetch_visible(
        self,
        principal: Principal | None,
        resource: Resource,
        loader: Callable[[str], Mapping[str, object] | None],
        record_id: str,
        action: Action = Action.READ,
    ) -> Mapping[str, object]:
        """Load one record and return it only if *principal* may see it.

        A missing record and a record outside the principal's scope raise
        the same ``Forbidden``, so the response never reveals existence.
        """
        if principal is None:
            raise Unauthenticated()
        matrix = self._current()
        if not evaluator.can(principal, action, resource, matrix=matrix):
            raise Forbidden(f"{action.value} not granted on {resource.value}")
        row = loader(record_id)
        if row is None:
            raise Forbidden(f"{resource.value} {record_id!r} not found")
        instance = Record.from_mapping(row)
        if resource is Resource.CLIENTS and instance.client_id is None:
            instance = Record.for_client(record_id)
        self._authorize(principal, action, resource, instance, matrix)
        return row


def require_permission(
    action: Action,
    resource: Resource,
    matrix: PolicyMatrix | None = None,
) -> Callable[..., bool]:
    """Return a predicate ``(principal, instance=None) -> bool`` for one permission.

    An anonymous caller (``None``) is always refused.
    """

    def predicate(principal: Principal | None, instance: Record | None = None) -> bool:
        if principal is None:
            return False
        return evaluator.can(principal, action, resource, instance, matrix)

    return predicate


class ScopedExport:
    """Scoping for a report or export job, resolved exactly once.

    The decision is computed at construction. Every query and every batch
    of rows processed by the job is filtered with that same decision, so an
    exported document can only hold rows the requester is entitled to.

    Parameters
    ----------
    principal:
        The principal requesting the export.
    resource:
        The resource being exported.
    requested_client_id:
        Optional narrowing chosen by the requester.
    matrix:
        Policy to evaluate against.
    export_config:
        Column to filter on and row cap. Defaults to ``ExportConfig()``.
    """

    def __init__(
        self,
        principal: Principal,
        resource: Resource,
        requested_client_id: str | None = None,
        matrix: PolicyMatrix | None = None,
        export_config: ExportConfig | None = None,
    ) -> None:
        self._principal = principal
        self._resource = resource
        self._config = export_config if export_config is not None else ExportConfig()
        base = evaluator.scope_for(principal, resource, Action.READ, matrix)
        self._decision: ScopingDecision = narrow(base, requested_client_id)
        logger.debug(
            "Export of %s for principal %s scoped as %r",
            resource.value,
            principal.id,
            self._decision,
        )

    @property
    def decision(self) -> ScopingDecision:
        return self._decision

    @property
    def resource(self) -> Resource:
        return self._resource

    @property
    def is_denied(self) -> bool:
        return isinstance(self._decision, Denied)

    @property
    def max_rows(self) -> int:
        return self._config.max_rows

    def apply(self, query: _Q) -> _Q | None:
        """Narrow *query* on the configured client column.

        ``None`` means the export must be empty.
        """
        return apply_to_query(query, self._decision, column=self._config.client_column)

    def rows(self, rows: Iterable[_T]) -> list[_T]:
        """Return the rows of *rows* that may appear in the export.

        At most ``max_rows`` rows are returned.
        """
        visible = filter_rows(rows, self._decision, column=self._config.client_column)
        if len(visible) > self._config.max_rows:
            logger.warning(
                "Export of %s for principal %s truncated to %d of %d rows",
                self._resource.value,
                self._principal.id,
                self._config.max_rows,
                len(visible),
            )
        return visible[: self._config.max_rows]
