"""Closed vocabularies used by the access policy.

Every input to the evaluator is expressed through one of these enums, so a
misspelled resource or action fails when it is parsed rather than silently
falling through to a deny branch.

Example
-------
>>> Role.parse("technicien")
<Role.TECHNICIAN: 'technician'>
>>> Resource("licenses")
<Resource.LICENSES: 'licenses'>
"""
from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles a signed-in user can hold.

    Roles carry no implicit hierarchy: each one is declared independently
    in the policy matrix.
    """

    ADMIN = "admin"
    TECHNICIAN = "technician"
    CLIENT = "client"
    UNVERIFIED = "unverified"

    @classmethod
    def parse(cls, value: str | Role | None) -> Role:
        """Parse a role as stored on a user profile.

        Profiles store the technician role under its French spelling and
        freshly registered accounts may have no role at all; both are
        normalised here.

        Raises
        ------
        ValueError
            If *value* is not a known role name.
        """
        if isinstance(value, Role):
            return value
        if value is None or not str(value).strip():
            return cls.UNVERIFIED
        normalised = str(value).strip().lower()
        normalised = _ROLE_ALIASES.get(normalised, normalised)
        try:
            return cls(normalised)
        except ValueError:
            raise ValueError(
                f"Unknown role {value!r}. Valid: {sorted(r.value for r in cls)}"
            ) from None


_ROLE_ALIASES: dict[str, str] = {
    "technicien": "technician",
    "tech": "technician",
}


class Resource(str, Enum):
    """Protected collections of records."""

    CLIENTS = "clients"
    LICENSES = "licenses"
    LICENSE_SUPPLIERS = "license_suppliers"
    LICENSE_TYPES = "license_types"
    EQUIPMENT = "equipment"
    EQUIPMENT_TYPES = "equipment_types"
    EQUIPMENT_BRANDS = "equipment_brands"
    USERS = "users"
    NOTIFICATIONS = "notifications"
    REPORTS = "reports"
    DASHBOARD = "dashboard"


class Action(str, Enum):
    """Operations a principal can request on a resource."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def mutations(cls) -> frozenset[Action]:
        return frozenset({cls.CREATE, cls.UPDATE, cls.DELETE})


class Scope(str, Enum):
    """Row visibility attached to a (role, resource) rule."""

    ALL = "all"
    OWN_CLIENT = "own_client"
