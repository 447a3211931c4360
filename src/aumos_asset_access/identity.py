"""Principals and resource instances fed to the evaluator.

A :class:`Principal` is resolved once per request from the signed-in
user's profile. A :class:`Record` is the minimal typed view of a database
row needed to test ownership.

Example
-------
>>> profile = {"id": "u1", "role": "client", "client_id": "C1", "email": "a@b.c"}
>>> principal = Principal.from_profile(profile)
>>> principal.role, principal.client_id, principal.verified
(<Role.CLIENT: 'client'>, 'C1', True)
>>> Record.from_mapping({"id": "lic-9", "client_id": "C1", "name": "Office"}).client_id
'C1'
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from aumos_asset_access.errors import Unauthenticated
from aumos_asset_access.policy.enums import Role

logger = logging.getLogger(__name__)


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class Principal:
    """The authenticated identity a request acts as.

    Attributes
    ----------
    id:
        User identifier.
    role:
        The user's role.
    client_id:
        Identifier of the client organisation the user belongs to, or
        ``None`` when the user is not attached to one.
    verified:
        Whether an administrator has validated the account. Must be
        ``False`` when ``role`` is ``Role.UNVERIFIED``.
    email:
        Optional display address.
    """

    id: str
    role: Role
    client_id: str | None = None
    verified: bool = True
    email: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.role, Role):
            raise TypeError(f"Principal.role must be a Role; got {self.role!r}")
        if self.role is Role.UNVERIFIED and self.verified:
            raise ValueError("A principal with role 'unverified' cannot be verified.")

    @classmethod
    def from_profile(cls, profile: Mapping[str, object]) -> Principal:
        """Build a principal from a persisted user profile row.

        The profile's ``role`` may be a stored alias. A missing or unknown
        role yields an unverified principal.

        Raises
        ------
        ValueError
            If the profile has no ``id``.
        """
        user_id = _optional_str(profile.get("id"))
        if user_id is None:
            raise ValueError("Profile has no 'id'.")
        try:
            role = Role.parse(profile.get("role"))  # type: ignore[arg-type]
        except ValueError:
            logger.warning(
                "Profile %s has unknown role %r; treating it as unverified",
                user_id,
                profile.get("role"),
            )
            role = Role.UNVERIFIED
        return cls(
            id=user_id,
            role=role,
            client_id=_optional_str(profile.get("client_id")),
            verified=role is not Role.UNVERIFIED,
            email=_optional_str(profile.get("email")),
        )

    @property
    def effective_role(self) -> Role:
        """Role used for evaluation; unverified accounts lose their role."""
        return self.role if self.verified else Role.UNVERIFIED


def resolve_principal(profile: Mapping[str, object] | None) -> Principal:
    """Return the principal for a session profile.

    Raises
    ------
    Unauthenticated
        If the session resolved no profile, or one without an ``id``.
    """
    if profile is None:
        raise Unauthenticated()
    try:
        return Principal.from_profile(profile)
    except ValueError as exc:
        raise Unauthenticated(str(exc)) from exc


@dataclass(frozen=True)
class Record:
    """Ownership-relevant fields of a single resource instance.

    Attributes
    ----------
    client_id:
        The client that owns the record, or ``None`` for unowned rows.
    id:
        The record's own identifier. For user records this is the user id,
        for client records it is the client id.
    """

    client_id: str | None = None
    id: str | None = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, object]) -> Record:
        """Build a Record from a database row mapping."""
        return cls(
            client_id=_optional_str(row.get("client_id")),
            id=_optional_str(row.get("id")),
        )

    @classmethod
    def for_client(cls, client_id: str) -> Record:
        """Return the record of a client organisation, which owns itself."""
        return cls(client_id=client_id, id=client_id)
