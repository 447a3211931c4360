"""Denial taxonomy shared by the evaluator and its callers.

The evaluator itself reports denials as values (``False``, ``Denied``,
:class:`DenialKind`). The exceptions below are raised by the request guards
in :mod:`aumos_asset_access.guards` so that a request handler can map them
to a response in one place.

``ScopeDenied`` subclasses ``Forbidden`` and exposes the same public
message: callers handle both identically, while logs keep the distinction.

Example
-------
>>> try:
...     raise ScopeDenied("client user without client_id")
... except Forbidden as exc:
...     exc.status_code, exc.public_message
(403, 'Not permitted')
"""
from __future__ import annotations

from enum import Enum


class DenialKind(str, Enum):
    """Why an access request was refused."""

    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    SCOPE_DENIED = "scope_denied"


class AccessError(Exception):
    """Base class for access-control failures surfaced to callers.

    Attributes
    ----------
    kind:
        The :class:`DenialKind` of the failure.
    status_code:
        HTTP status a request handler should answer with.
    public_message:
        Generic text that is safe to show to the requester.
    detail:
        Internal diagnostic text. Never returned to the requester.
    """

    kind: DenialKind = DenialKind.FORBIDDEN
    status_code: int = 403
    public_message: str = "Not permitted"

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail or self.public_message)

    def to_response(self) -> dict[str, object]:
        """Return the JSON body a request handler should send."""
        return {"message": self.public_message, "status": self.status_code}


class Unauthenticated(AccessError):
    """No principal could be resolved from the session."""

    kind = DenialKind.UNAUTHENTICATED
    status_code = 401
    public_message = "Authentication required"


class Forbidden(AccessError):
    """The principal is known but the requested access is not allowed.

    Also raised when a record is missing, so that the response does not
    reveal whether it exists.
    """

    kind = DenialKind.FORBIDDEN


class ScopeDenied(Forbidden):
    """The principal's row scope could not be resolved (fail closed)."""

    kind = DenialKind.SCOPE_DENIED
