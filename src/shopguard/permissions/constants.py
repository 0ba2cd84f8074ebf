"""Role, resource, action and reason constants for shopguard.

Provides:
- ``Role``: shop-scoped roles plus the legacy ``viewer`` global role.
- ``Resource``: resources a role can be granted capabilities over.
- ``Action``: read / write / delete.
- ``Reason``: stable reason codes attached to every decision.
- ``ShopStatus``: lifecycle status of a shop.
"""

from __future__ import annotations


class Role:
    """Role labels.

    Shop assignments use one of :attr:`SHOP_ROLES`. The legacy global
    role on a user may additionally be ``viewer`` or unset; any label
    outside the matrix resolves to an all-false capability table.
    """

    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"
    SALES = "sales"
    VIEWER = "viewer"  # Legacy global role only

    SHOP_ROLES = frozenset({"admin", "manager", "staff", "sales"})

    @staticmethod
    def normalize(role: str | None) -> str:
        """Normalize a role label for storage and lookup.

        Example::

            Role.normalize("Manager")  # "manager"
            Role.normalize(None)       # ""
        """
        if not role:
            return ""
        return str(role).strip().lower()


class Resource:
    INVENTORY = "inventory"
    SALES = "sales"
    CUSTOMERS = "customers"
    REPORTS = "reports"
    STAFF = "staff"
    SETTINGS = "settings"

    ALL = frozenset({"inventory", "sales", "customers", "reports", "staff", "settings"})


class Action:
    READ = "read"
    WRITE = "write"
    DELETE = "delete"

    ALL = frozenset({"read", "write", "delete"})


class Reason:
    """Why a decision came out the way it did.

    Distinguished so the UI layer can render "contact admin" for
    ``NO_MEMBERSHIP`` and "account blocked" for ``BLOCKED``.
    """

    OVERRIDE = "override"
    MATRIX_ALLOW = "matrix-allow"
    MATRIX_DENY = "matrix-deny"
    NO_MEMBERSHIP = "no-membership"
    BLOCKED = "blocked"
    SHOP_INACTIVE = "shop-inactive"
    ORPHANED_ASSIGNMENT = "orphaned-assignment"
    UNKNOWN_RESOURCE = "unknown-resource"
    UNKNOWN_ACTION = "unknown-action"


class ShopStatus:
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"

    ALL = frozenset({"active", "inactive", "suspended"})


__all__ = [
    "Action",
    "Reason",
    "Resource",
    "Role",
    "ShopStatus",
]
