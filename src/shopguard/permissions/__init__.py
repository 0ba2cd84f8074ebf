"""Permission-resolution engine for shopguard.

Defines:
- Role / Resource / Action / Reason / ShopStatus constants
- PermissionMatrix: role → resource → {read, write, delete}
- resolve_effective_role(): the authority precedence algorithm
- CapabilityEvaluator / can(): allow/deny with a reason code
- Access helpers for navigation and shop visibility
"""

from .access import (
    Section,
    can_access_section,
    can_change_global_role,
    can_change_shop_role,
    current_shop,
    filter_by_shop_access,
    visible_shop_ids,
)
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
from .constants import Action, Reason, Resource, Role, ShopStatus
from .evaluator import CapabilityEvaluator, Decision, can
from .matrix import (
    DEFAULT_MATRIX,
    DEFAULT_SHOP_PERMISSIONS,
    Capability,
    CapabilityTable,
    PermissionMatrix,
    matrix_for,
)

__all__ = [
    "DEFAULT_MATRIX",
    "DEFAULT_SHOP_PERMISSIONS",
    "Action",
    "Capability",
    "CapabilityEvaluator",
    "CapabilityTable",
    "Decision",
    "EffectiveAuthority",
    "InactiveShopOwner",
    "LegacyGlobalRole",
    "NoAccess",
    "PermissionMatrix",
    "Reason",
    "Resource",
    "Role",
    "RootAdminOverride",
    "Section",
    "ShopOwnerOverride",
    "ShopRole",
    "ShopStatus",
    "can",
    "can_access_section",
    "can_change_global_role",
    "can_change_shop_role",
    "current_shop",
    "filter_by_shop_access",
    "matrix_for",
    "resolve_effective_role",
    "visible_shop_ids",
]
