"""Capability evaluation: allow/deny for a (resource, action) pair.

Provides:
- ``Decision``: result of a check (allowed + reason + authority).
- ``CapabilityEvaluator``: resolver + matrix lookup with injected configuration.
- ``can()``: module-level check against the built-in matrix.

Evaluation is pure: it reads the records it is given and emits no log
records. Callers log decisions where they need an audit trail.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from .authority import (
    EffectiveAuthority,
    InactiveShopOwner,
    LegacyGlobalRole,
    NoAccess,
    RootAdminOverride,
    ShopOwnerOverride,
    ShopRole,
    resolve_effective_role,
)
from .constants import Action, Reason, Resource, Role
from .matrix import DEFAULT_MATRIX, PermissionMatrix

if TYPE_CHECKING:
    from ..config import EngineConfig
    from ..interfaces import ShopDirectory
    from ..models import User


@dataclass(frozen=True)
class Decision:
    """Result of a capability check. Never raised, always returned."""

    allowed: bool
    reason: str
    authority: Optional[EffectiveAuthority] = None

    @property
    def denied(self) -> bool:
        return not self.allowed

    def __bool__(self) -> bool:
        return self.allowed


class CapabilityEvaluator:
    """Answers allow/deny for a user, shop, resource and action.

    The matrix and shop directory are injected at construction so tests
    and deployments can substitute them; nothing here is a hidden global.

    Args:
        matrix: Permission matrix to consult for role-based authorities.
        shops: Optional shop directory for the non-active shop rule.
        legacy_default_role: Global role assumed for users without one.

    Example::

        evaluator = CapabilityEvaluator()
        evaluator.can(user, "shop_001", Resource.SALES, Action.WRITE)
        # Decision(allowed=True, reason="matrix-allow", ...)
    """

    def __init__(
        self,
        matrix: PermissionMatrix = DEFAULT_MATRIX,
        shops: Optional[ShopDirectory] = None,
        legacy_default_role: str = Role.VIEWER,
    ) -> None:
        self.matrix = matrix
        self.shops = shops
        self.legacy_default_role = legacy_default_role

    @classmethod
    def from_config(cls, config: EngineConfig, shops: Optional[ShopDirectory] = None) -> CapabilityEvaluator:
        from ..config import load_matrix

        return cls(
            matrix=load_matrix(config),
            shops=shops,
            legacy_default_role=config.legacy_default_role,
        )

    def resolve(self, user: User, target_shop_id: Optional[str] = None) -> EffectiveAuthority:
        return resolve_effective_role(
            user,
            target_shop_id,
            shops=self.shops,
            legacy_default_role=self.legacy_default_role,
        )

    def can(self, user: User, target_shop_id: Optional[str], resource: str, action: str) -> Decision:
        """Decide whether ``user`` may perform ``action`` on ``resource`` in a shop.

        Checks in order:
        1. No effective authority (blocked, no membership, inactive or
           orphaned shop) → deny with that reason.
        2. Unknown resource / action → deny (``unknown-resource`` /
           ``unknown-action``).
        3. Root admin or shop owner → allow (``override``).
        4. Owner of a non-active shop → allow ``settings``/``read`` only.
        5. Shop role or legacy global role → matrix lookup.

        Raises:
            InvalidInputError: ``user`` is None or the shop id is malformed.
        """
        authority = self.resolve(user, target_shop_id)
        return self._decide(authority, resource, action)

    def _decide(self, authority: EffectiveAuthority, resource: str, action: str) -> Decision:
        if isinstance(authority, NoAccess):
            return Decision(False, authority.reason, authority)

        if not isinstance(resource, str) or resource not in Resource.ALL:
            return Decision(False, Reason.UNKNOWN_RESOURCE, authority)
        if not isinstance(action, str) or action not in Action.ALL:
            return Decision(False, Reason.UNKNOWN_ACTION, authority)

        if isinstance(authority, (RootAdminOverride, ShopOwnerOverride)):
            return Decision(True, Reason.OVERRIDE, authority)

        if isinstance(authority, InactiveShopOwner):
            if resource == Resource.SETTINGS and action == Action.READ:
                return Decision(True, Reason.OVERRIDE, authority)
            return Decision(False, Reason.SHOP_INACTIVE, authority)

        if isinstance(authority, (ShopRole, LegacyGlobalRole)):
            allowed = self.matrix.matrix_for(authority.role)[resource][action]
            return Decision(allowed, Reason.MATRIX_ALLOW if allowed else Reason.MATRIX_DENY, authority)

        raise TypeError(f"Unhandled authority: {authority!r}")


_default_evaluator = CapabilityEvaluator()


def can(
    user: User,
    target_shop_id: Optional[str],
    resource: str,
    action: str,
    *,
    matrix: Optional[PermissionMatrix] = None,
    shops: Optional[ShopDirectory] = None,
) -> Decision:
    """Module-level check; uses the built-in matrix unless one is given.

    Example::

        can(user, "shop_001", "sales", "write").allowed   # True for sales role
        can(user, "shop_002", "sales", "read").reason     # "no-membership"
    """
    if matrix is None and shops is None:
        return _default_evaluator.can(user, target_shop_id, resource, action)
    return CapabilityEvaluator(matrix=matrix or DEFAULT_MATRIX, shops=shops).can(
        user, target_shop_id, resource, action
    )


__all__ = [
    "CapabilityEvaluator",
    "Decision",
    "can",
]
