"""Access helpers for navigation, shop visibility and role management.

Provides runtime functions used by presentation collaborators to decide
what to show a user. They follow the same overrides as the evaluator:
blocked users get nothing, root admins get everything.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, TypeVar

from .authority import require_user
from .constants import Role

if TYPE_CHECKING:
    from ..models import ShopAssignment, User

T = TypeVar("T")


class Section:
    """Navigation sections gated by :func:`can_access_section`."""

    CUSTOMERS = "customers"
    USER_PROFILE = "user_profile"
    ROLE_MANAGEMENT = "role_management"
    SHOP_MANAGEMENT = "shop_management"
    INVENTORY = "inventory"
    SALES = "sales"
    BRAND_CATEGORY = "brand_category"
    TASK_MANAGEMENT = "task_management"
    ALL_ORDERS = "all_orders"
    PENDING_ORDERS = "pending_orders"


_ORDER_ROLES = frozenset({Role.ADMIN, Role.MANAGER, Role.SALES})

_SECTION_RULES: dict[str, Callable[[User], bool]] = {
    Section.CUSTOMERS: lambda user: True,
    Section.USER_PROFILE: lambda user: True,
    Section.ROLE_MANAGEMENT: lambda user: bool(user.owned_shop_ids),
    Section.SHOP_MANAGEMENT: lambda user: bool(user.owned_shop_ids),
    Section.INVENTORY: lambda user: bool(user.assigned_shops),
    Section.SALES: lambda user: bool(user.assigned_shops),
    Section.TASK_MANAGEMENT: lambda user: bool(user.assigned_shops),
    Section.BRAND_CATEGORY: lambda user: False,  # Root admin only
    Section.ALL_ORDERS: lambda user: user.role in _ORDER_ROLES,
    Section.PENDING_ORDERS: lambda user: user.role in _ORDER_ROLES,
}


def can_access_section(user: User, section: str) -> bool:
    """Check if ``user`` may open a navigation section.

    Checks in order:
    1. Blocked → False
    2. Root admin → True
    3. Section rule (unknown sections → False)

    Example::

        can_access_section(owner, Section.SHOP_MANAGEMENT)   # True
        can_access_section(member, Section.SHOP_MANAGEMENT)  # False
        can_access_section(member, Section.INVENTORY)        # True
    """
    user = require_user(user)
    if user.blocked:
        return False
    if user.is_root_admin:
        return True
    rule = _SECTION_RULES.get(section)
    return rule(user) if rule is not None else False


def current_shop(user: User) -> Optional[ShopAssignment]:
    """Return the assignment for the user's active shop.

    Falls back to the first assignment when ``current_shop`` is unset
    or points at a shop the user no longer belongs to. This is a UI
    default only; authorization always takes an explicit shop id.
    """
    user = require_user(user)
    if user.current_shop is not None:
        assignment = user.assignment_for(user.current_shop)
        if assignment is not None:
            return assignment
    return user.assigned_shops[0] if user.assigned_shops else None


def visible_shop_ids(user: User) -> Optional[tuple[str, ...]]:
    """Shop ids the user may list.

    Returns:
        None when every shop is visible (root admin), otherwise the
        assigned shop ids. Blocked users get an empty tuple.
    """
    user = require_user(user)
    if user.blocked:
        return ()
    if user.is_root_admin:
        return None
    return user.shop_ids


def _field_of(item: Any, field: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(field)
    return getattr(item, field, None)


def filter_by_shop_access(items: Iterable[T], user: User, field: str = "shop_id") -> list[T]:
    """Keep only items whose ``field`` names a shop visible to ``user``.

    Works with mappings and plain objects alike.

    Example::

        rows = [{"shop_id": "shop_001"}, {"shop_id": "shop_002"}]
        filter_by_shop_access(rows, member_of_001)  # [{"shop_id": "shop_001"}]
    """
    visible = visible_shop_ids(user)
    if visible is None:
        return list(items)
    allowed = set(visible)
    return [item for item in items if _field_of(item, field) in allowed]


def can_change_global_role(editor: User, target: User) -> bool:
    """Only root admins may change a user's legacy global role."""
    if editor is None or target is None:
        return False
    return editor.is_root_admin and not editor.blocked


def can_change_shop_role(editor: User, target: User, shop_id: str) -> bool:
    """Root admins and the owner of ``shop_id`` may change roles in that shop."""
    if editor is None or target is None or editor.blocked:
        return False
    if editor.is_root_admin:
        return True
    assignment = editor.assignment_for(shop_id)
    return assignment is not None and assignment.is_owner


__all__ = [
    "Section",
    "can_access_section",
    "can_change_global_role",
    "can_change_shop_role",
    "current_shop",
    "filter_by_shop_access",
    "visible_shop_ids",
]
