"""Unified exception hierarchy for shopguard.

All errors inherit from ShopGuardError. This module provides:
- Base exception hierarchy with stable error codes
- Typed assignment invariant violations
- ErrorRegistry for mapping codes to UI messages

Decision functions never raise these for a denied request; a denial is a
reason code on the returned decision. Only mutations and malformed input raise.

Usage:
    from shopguard.exceptions import OwnershipConflict, error_registry

    try:
        store.assign(user, shop, "manager", is_owner=True)
    except OwnershipConflict as e:
        render(e.code, e.details["owner_uid"])
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar, cast

__all__ = [
    # Base hierarchy
    "ShopGuardError",
    "ConfigurationError",
    "InvalidInputError",
    "AssignmentError",
    # Assignment invariants
    "DuplicateAssignment",
    "OwnershipConflict",
    "AssignmentNotFound",
    "CannotDemoteOwner",
    "CannotRemoveOwnerAssignment",
    "NotCurrentOwner",
    # Registry
    "ErrorRegistry",
    "error_registry",
    "register_error",
]


# ---- Exception Hierarchy ----------------------------------------------------


class ShopGuardError(Exception):
    """Base exception for shopguard.

    Attributes:
        code: Stable error code string (e.g. "OWNERSHIP_CONFLICT").
        message: Human-readable error description.
        details: Additional context as keyword arguments.
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An internal error occurred"

    def __init__(self, message: str | None = None, code: str | None = None, **kwargs: Any) -> None:
        self.message = message or self.message
        self.code = code or self.code
        self.details = kwargs
        super().__init__(self.message)


class ConfigurationError(ShopGuardError):
    """Invalid or missing configuration (e.g. unreadable permission matrix)."""

    code: str = "CONFIGURATION_ERROR"
    message: str = "Invalid configuration"


class InvalidInputError(ShopGuardError):
    """Input contract violation: absent user, malformed shop id, unknown role."""

    code: str = "INVALID_INPUT"
    message: str = "Invalid input"


class AssignmentError(ShopGuardError):
    """Base for shop assignment invariant violations.

    Recoverable by choosing a different operation or target,
    never by retrying the same call unchanged.
    """

    code: str = "ASSIGNMENT_ERROR"
    message: str = "Shop assignment rejected"


class DuplicateAssignment(AssignmentError):
    """User already has an assignment for this shop; use update_role instead."""

    code: str = "DUPLICATE_ASSIGNMENT"
    message: str = "User is already assigned to this shop"


class OwnershipConflict(AssignmentError):
    """Another user already owns this shop; use transfer_ownership instead."""

    code: str = "OWNERSHIP_CONFLICT"
    message: str = "Shop already has an owner"


class AssignmentNotFound(AssignmentError):
    code: str = "ASSIGNMENT_NOT_FOUND"
    message: str = "User is not assigned to this shop"


class CannotDemoteOwner(AssignmentError):
    """Owner's role can't drop below admin until ownership is transferred."""

    code: str = "CANNOT_DEMOTE_OWNER"
    message: str = "Transfer ownership before changing the owner's role"


class CannotRemoveOwnerAssignment(AssignmentError):
    code: str = "CANNOT_REMOVE_OWNER_ASSIGNMENT"
    message: str = "Transfer ownership before removing the owner from the shop"


class NotCurrentOwner(AssignmentError):
    code: str = "NOT_CURRENT_OWNER"
    message: str = "User is not the current owner of this shop"


# ---- Error Registry ----------------------------------------------------------

_E = TypeVar("_E", bound=type[ShopGuardError])


class ErrorRegistry:
    """Registry for mapping stable error codes to error classes."""

    def __init__(self) -> None:
        self._errors: dict[str, type[ShopGuardError]] = {}

    def register(self, code: str, error_cls: type[ShopGuardError]) -> None:
        self._errors[code] = error_cls

    def get(self, code: str) -> type[ShopGuardError] | None:
        return self._errors.get(code)

    def all(self) -> dict[str, type[ShopGuardError]]:
        return dict(self._errors)


error_registry = ErrorRegistry()


def register_error(code: str) -> Callable[[_E], _E]:
    """Decorator to register a custom error type.

    Usage:
        @register_error("SHOP_LIMIT_REACHED")
        class ShopLimitReached(AssignmentError):
            code = "SHOP_LIMIT_REACHED"
    """

    def decorator(cls: _E) -> _E:
        error_registry.register(code, cls)
        return cls

    return cast(Callable[[_E], _E], decorator)


# Register built-in errors
for _cls in (
    ShopGuardError,
    ConfigurationError,
    InvalidInputError,
    AssignmentError,
    DuplicateAssignment,
    OwnershipConflict,
    AssignmentNotFound,
    CannotDemoteOwner,
    CannotRemoveOwnerAssignment,
    NotCurrentOwner,
):
    error_registry.register(_cls.code, _cls)
