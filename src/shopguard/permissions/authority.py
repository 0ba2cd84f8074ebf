"""Role resolution: which single authority governs a user's request.

Provides:
- ``EffectiveAuthority``: tagged union of the authorities below.
- ``resolve_effective_role()``: the precedence algorithm.

Precedence (first match wins)::

    blocked  >  root admin  >  no shop context (legacy role)  >  shop membership

Reordering these steps changes security semantics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Optional, Union

from ..exceptions import InvalidInputError
from .constants import Reason, Role, ShopStatus

if TYPE_CHECKING:
    from ..interfaces import ShopDirectory
    from ..models import User


# ── Authorities ─────────────────────────────────────────


@dataclass(frozen=True)
class RootAdminOverride:
    """System-wide bypass; every matrix check is skipped."""

    kind: ClassVar[str] = "root-admin"


@dataclass(frozen=True)
class ShopOwnerOverride:
    """Owner of ``shop_id``; full access to that shop regardless of matrix edits."""

    shop_id: str
    kind: ClassVar[str] = "shop-owner"


@dataclass(frozen=True)
class InactiveShopOwner:
    """Owner of a shop that is not active; may only read shop settings."""

    shop_id: str
    status: str
    kind: ClassVar[str] = "inactive-shop-owner"


@dataclass(frozen=True)
class ShopRole:
    role: str
    shop_id: str
    kind: ClassVar[str] = "shop-role"


@dataclass(frozen=True)
class LegacyGlobalRole:
    """Pre-multi-tenant role, used only when the caller passes no shop."""

    role: str
    kind: ClassVar[str] = "legacy-global-role"


@dataclass(frozen=True)
class NoAccess:
    reason: str
    shop_id: Optional[str] = None
    kind: ClassVar[str] = "no-access"


EffectiveAuthority = Union[
    RootAdminOverride,
    ShopOwnerOverride,
    InactiveShopOwner,
    ShopRole,
    LegacyGlobalRole,
    NoAccess,
]


# ── Input checks ────────────────────────────────────────


def require_user(user: Optional[User]) -> User:
    if user is None:
        raise InvalidInputError("A user record is required", field="user")
    return user


def validate_shop_id(shop_id: object) -> Optional[str]:
    """Return ``shop_id`` unchanged, or raise if it is present but malformed.

    None means "no shop context". Anything else must be a non-blank string.
    """
    if shop_id is None:
        return None
    if not isinstance(shop_id, str) or not shop_id.strip():
        raise InvalidInputError(f"Malformed shop identifier: {shop_id!r}", field="shop_id")
    return shop_id


# ── Resolver ────────────────────────────────────────────


def resolve_effective_role(
    user: User,
    target_shop_id: Optional[str] = None,
    *,
    shops: Optional[ShopDirectory] = None,
    legacy_default_role: str = Role.VIEWER,
) -> EffectiveAuthority:
    """Determine the single authority governing ``user`` for ``target_shop_id``.

    ``user.current_shop`` is deliberately ignored: only the explicit
    ``target_shop_id`` is an authorization input.

    Args:
        user: User record from the identity collaborator.
        target_shop_id: Shop the request targets, or None for legacy callers.
        shops: Optional shop directory. When given, members of non-active
            shops lose their role and assignments to unknown shops are
            treated as orphaned. Without it every shop counts as active.
        legacy_default_role: Global role assumed when ``user.role`` is unset.

    Returns:
        One of the :data:`EffectiveAuthority` variants.

    Raises:
        InvalidInputError: ``user`` is None or ``target_shop_id`` is malformed.

    Example::

        user = User(uid="u1", role="admin", assigned_shops=[
            ShopAssignment(shop_id="shop_001", role="sales"),
        ])
        resolve_effective_role(user, "shop_001")  # ShopRole("sales", "shop_001")
        resolve_effective_role(user, "shop_002")  # NoAccess("no-membership", "shop_002")
        resolve_effective_role(user)              # LegacyGlobalRole("admin")
    """
    user = require_user(user)
    target_shop_id = validate_shop_id(target_shop_id)

    if user.blocked:
        return NoAccess(Reason.BLOCKED, target_shop_id)

    if user.is_root_admin:
        return RootAdminOverride()

    if target_shop_id is None:
        return LegacyGlobalRole(user.role or Role.normalize(legacy_default_role))

    # The legacy global role is not consulted past this point
    assignment = user.assignment_for(target_shop_id)
    if assignment is None:
        return NoAccess(Reason.NO_MEMBERSHIP, target_shop_id)

    if shops is not None:
        status = shops.status_of(target_shop_id)
        if status is None:
            return NoAccess(Reason.ORPHANED_ASSIGNMENT, target_shop_id)
        if status != ShopStatus.ACTIVE:
            if assignment.is_owner:
                return InactiveShopOwner(target_shop_id, status)
            return NoAccess(Reason.SHOP_INACTIVE, target_shop_id)

    if assignment.is_owner:
        return ShopOwnerOverride(target_shop_id)

    return ShopRole(assignment.role, target_shop_id)


__all__ = [
    "EffectiveAuthority",
    "InactiveShopOwner",
    "LegacyGlobalRole",
    "NoAccess",
    "RootAdminOverride",
    "ShopOwnerOverride",
    "ShopRole",
    "require_user",
    "resolve_effective_role",
    "validate_shop_id",
]
