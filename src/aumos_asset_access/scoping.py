"""Row-scoping decisions and the helpers that apply them.

:func:`aumos_asset_access.evaluator.scope_for` returns one of three
decisions. Every caller that lists, reads or exports a scoped resource
branches on that decision the same way:

- ``Unrestricted``: query with no tenant filter.
- ``RestrictedToClient(id)``: query with ``client_id = id``.
- ``Denied``: return no rows. Never fall back to an unfiltered query.

The helpers here implement those three branches once so that the web
handlers, the UI data hooks and the export jobs cannot drift apart.

Example
-------
::

    decision = scope_for(principal, Resource.LICENSES)
    query = apply_to_query(db.table("licenses").select("*"), decision)
    rows = [] if query is None else query.execute()
"""
from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Protocol, TypeVar, Union

from aumos_asset_access.errors import DenialKind

_T = TypeVar("_T")
_Q = TypeVar("_Q", bound="SupportsEq")

CLIENT_COLUMN = "client_id"


class SupportsEq(Protocol):
    """Query builders that can add an equality predicate."""

    def eq(self, column: str, value: object) -> SupportsEq: ...


@dataclass(frozen=True)
class Unrestricted:
    """Rows of every client are visible."""

    def filter_params(self) -> dict[str, str] | None:
        return {}

    def allows_client(self, client_id: str | None) -> bool:
        return True


@dataclass(frozen=True)
class RestrictedToClient:
    """Only rows owned by ``client_id`` are visible."""

    client_id: str

    def __post_init__(self) -> None:
        if not self.client_id:
            raise ValueError("RestrictedToClient requires a non-empty client_id.")

    def filter_params(self) -> dict[str, str] | None:
        return {CLIENT_COLUMN: self.client_id}

    def allows_client(self, client_id: str | None) -> bool:
        return client_id is not None and client_id == self.client_id


@dataclass(frozen=True)
class Denied:
    """No row is visible.

    Attributes
    ----------
    kind:
        ``DenialKind.SCOPE_DENIED`` when the principal lacks the client it
        should be scoped to, ``DenialKind.FORBIDDEN`` when it may not read
        the resource at all.
    detail:
        Internal diagnostic text.
    """

    kind: DenialKind = DenialKind.SCOPE_DENIED
    detail: str = ""

    def filter_params(self) -> dict[str, str] | None:
        return None

    def allows_client(self, client_id: str | None) -> bool:
        return False


ScopingDecision = Union[Unrestricted, RestrictedToClient, Denied]

UNRESTRICTED = Unrestricted()


def apply_to_query(
    query: _Q,
    decision: ScopingDecision,
    column: str = CLIENT_COLUMN,
) -> _Q | None:
    """Apply *decision* to a query builder.

    Returns the query unchanged for ``Unrestricted``, narrowed with
    ``.eq(column, client_id)`` for ``RestrictedToClient``, and ``None`` for
    ``Denied``: the caller must then answer with an empty result.
    """
    match decision:
        case Unrestricted():
            return query
        case RestrictedToClient(client_id=client_id):
            return query.eq(column, client_id)  # type: ignore[return-value]
        case Denied():
            return None
    raise TypeError(f"Unknown scoping decision: {decision!r}")


def _client_of(row: object, column: str) -> str | None:
    if isinstance(row, Mapping):
        value = row.get(column)
    else:
        value = getattr(row, column, None)
    return None if value is None else str(value)


def filter_rows(
    rows: Iterable[_T],
    decision: ScopingDecision,
    client_of: Callable[[_T], str | None] | None = None,
    column: str = CLIENT_COLUMN,
) -> list[_T]:
    """Return the subset of *rows* visible under *decision*.

    Rows may be mappings or objects exposing ``column`` as an attribute;
    pass *client_of* to extract the owning client any other way.
    """
    extract = client_of or (lambda row: _client_of(row, column))
    match decision:
        case Unrestricted():
            return list(rows)
        case RestrictedToClient(client_id=client_id):
            return [row for row in rows if extract(row) == client_id]
        case Denied():
            return []
    raise TypeError(f"Unknown scoping decision: {decision!r}")


def narrow(decision: ScopingDecision, requested_client_id: str | None) -> ScopingDecision:
    """Combine *decision* with a client filter chosen by the caller.

    A ``client_id`` query parameter only ever narrows what the principal
    may already see. For an unrestricted principal it selects that client;
    for a restricted one it must match the principal's own client or the
    result is ``Denied``.
    """
    if requested_client_id is None or not requested_client_id.strip():
        return decision
    requested = requested_client_id.strip()
    match decision:
        case Unrestricted():
            return RestrictedToClient(requested)
        case RestrictedToClient(client_id=client_id):
            if client_id == requested:
                return decision
            return Denied(
                kind=DenialKind.FORBIDDEN,
                detail=f"requested client {requested!r} outside scope",
            )
        case Denied():
            return decision
    raise TypeError(f"Unknown scoping decision: {decision!r}")
