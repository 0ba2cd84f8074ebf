from .models import BusinessHours, Shop, ShopAssignment, ShopSettings, User
from .config import EngineConfig, LogLevel, load_config_from_env, load_matrix
from .exceptions import (
    AssignmentError,
    AssignmentNotFound,
    CannotDemoteOwner,
    CannotRemoveOwnerAssignment,
    ConfigurationError,
    DuplicateAssignment,
    InvalidInputError,
    NotCurrentOwner,
    OwnershipConflict,
    ShopGuardError,
    error_registry,
)
from .interfaces import InMemoryShopDirectory, ShopDirectory
from .logging import (
    AuthzFormatter,
    AuthzLoggerAdapter,
    get_authz_logger,
    safe_preview,
    setup_logging,
)
from .permissions import (
    DEFAULT_MATRIX,
    DEFAULT_SHOP_PERMISSIONS,
    Action,
    Capability,
    CapabilityEvaluator,
    CapabilityTable,
    Decision,
    EffectiveAuthority,
    InactiveShopOwner,
    LegacyGlobalRole,
    NoAccess,
    PermissionMatrix,
    Reason,
    Resource,
    Role,
    RootAdminOverride,
    Section,
    ShopOwnerOverride,
    ShopRole,
    ShopStatus,
    can,
    can_access_section,
    can_change_global_role,
    can_change_shop_role,
    current_shop,
    filter_by_shop_access,
    matrix_for,
    resolve_effective_role,
    visible_shop_ids,
)
from .assignments import AssignmentStore

__all__ = [
    'User',
    'Shop',
    'ShopAssignment',
    'ShopSettings',
    'BusinessHours',
    'EngineConfig',
    'LogLevel',
    'load_config_from_env',
    'load_matrix',
    'ShopGuardError',
    'ConfigurationError',
    'InvalidInputError',
    'AssignmentError',
    'DuplicateAssignment',
    'OwnershipConflict',
    'AssignmentNotFound',
    'CannotDemoteOwner',
    'CannotRemoveOwnerAssignment',
    'NotCurrentOwner',
    'error_registry',
    'ShopDirectory',
    'InMemoryShopDirectory',
    'AuthzFormatter',
    'AuthzLoggerAdapter',
    'get_authz_logger',
    'safe_preview',
    'setup_logging',
    'DEFAULT_MATRIX',
    'DEFAULT_SHOP_PERMISSIONS',
    'Action',
    'Capability',
    'CapabilityEvaluator',
    'CapabilityTable',
    'Decision',
    'EffectiveAuthority',
    'InactiveShopOwner',
    'LegacyGlobalRole',
    'NoAccess',
    'PermissionMatrix',
    'Reason',
    'Resource',
    'Role',
    'RootAdminOverride',
    'Section',
    'ShopOwnerOverride',
    'ShopRole',
    'ShopStatus',
    'can',
    'can_access_section',
    'can_change_global_role',
    'can_change_shop_role',
    'current_shop',
    'filter_by_shop_access',
    'matrix_for',
    'resolve_effective_role',
    'visible_shop_ids',
    'AssignmentStore',
]
