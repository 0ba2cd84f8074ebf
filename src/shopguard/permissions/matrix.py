"""Permission matrix registry: role → resource → {read, write, delete}.

Provides:
- ``Capability``: the three action flags for one resource.
- ``CapabilityTable``: read-only resource → Capability mapping for one role.
- ``PermissionMatrix``: immutable registry built from configuration data.
- ``DEFAULT_SHOP_PERMISSIONS``: built-in matrix contents.
- ``DEFAULT_MATRIX`` / ``matrix_for()``: the built-in registry and its lookup.

Lookups are total: unknown roles, resources and actions all resolve to
"not granted" and never raise.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from ..exceptions import ConfigurationError
from .constants import Action, Resource, Role

# ── Default Matrix ──────────────────────────────────────
# Reports are never deletable, so no role lists ``delete`` for them.

DEFAULT_SHOP_PERMISSIONS: dict[str, dict[str, dict[str, bool]]] = {
    Role.ADMIN: {
        Resource.INVENTORY: {"read": True, "write": True, "delete": True},
        Resource.SALES: {"read": True, "write": True, "delete": True},
        Resource.CUSTOMERS: {"read": True, "write": True, "delete": True},
        Resource.REPORTS: {"read": True, "write": True},
        Resource.STAFF: {"read": True, "write": True, "delete": True},
        Resource.SETTINGS: {"read": True, "write": True},
    },
    Role.MANAGER: {
        Resource.INVENTORY: {"read": True, "write": True, "delete": False},
        Resource.SALES: {"read": True, "write": True, "delete": False},
        Resource.CUSTOMERS: {"read": True, "write": True, "delete": False},
        Resource.REPORTS: {"read": True, "write": False},
        Resource.STAFF: {"read": True, "write": True, "delete": False},
        Resource.SETTINGS: {"read": True, "write": False},
    },
    Role.STAFF: {
        Resource.INVENTORY: {"read": True, "write": True, "delete": False},
        Resource.SALES: {"read": True, "write": True, "delete": False},
        Resource.CUSTOMERS: {"read": True, "write": False, "delete": False},
        Resource.REPORTS: {"read": False, "write": False},
        Resource.STAFF: {"read": False, "write": False, "delete": False},
        Resource.SETTINGS: {"read": False, "write": False},
    },
    Role.SALES: {
        Resource.INVENTORY: {"read": True, "write": False, "delete": False},
        Resource.SALES: {"read": True, "write": True, "delete": False},
        Resource.CUSTOMERS: {"read": True, "write": True, "delete": False},
        Resource.REPORTS: {"read": True, "write": False},
        Resource.STAFF: {"read": False, "write": False, "delete": False},
        Resource.SETTINGS: {"read": False, "write": False},
    },
}

# (resource, action) pairs no matrix may grant
UNSUPPORTED_ACTIONS: frozenset[tuple[str, str]] = frozenset({(Resource.REPORTS, Action.DELETE)})


@dataclass(frozen=True)
class Capability:
    """Action flags for a single resource.

    Subscriptable by action name; unknown actions read as False::

        cap = Capability(read=True)
        cap["read"]    # True
        cap["export"]  # False
    """

    read: bool = False
    write: bool = False
    delete: bool = False

    def __getitem__(self, action: str) -> bool:
        if action not in Action.ALL:
            return False
        return getattr(self, action)

    def to_dict(self) -> dict[str, bool]:
        return {"read": self.read, "write": self.write, "delete": self.delete}


NO_CAPABILITY = Capability()


class CapabilityTable(Mapping[str, Capability]):
    """Read-only resource → Capability mapping for one role.

    Always holds an entry for every resource in :attr:`Resource.ALL`.
    Indexing with an unknown resource returns :data:`NO_CAPABILITY`
    instead of raising.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, Capability] | None = None) -> None:
        entries = entries or {}
        self._entries = MappingProxyType(
            {resource: entries.get(resource, NO_CAPABILITY) for resource in sorted(Resource.ALL)}
        )

    def __getitem__(self, resource: str) -> Capability:
        return self._entries.get(resource, NO_CAPABILITY)

    def __contains__(self, resource: object) -> bool:
        return resource in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def allows(self, resource: str, action: str) -> bool:
        return self[resource][action]

    def to_dict(self) -> dict[str, dict[str, bool]]:
        return {resource: cap.to_dict() for resource, cap in self._entries.items()}

    def __repr__(self) -> str:
        granted = [f"{r}:{a}" for r, cap in self._entries.items() for a in sorted(Action.ALL) if cap[a]]
        return f"CapabilityTable({granted!r})"


EMPTY_TABLE = CapabilityTable()


def _parse_capability(role: str, resource: str, raw: Any) -> Capability:
    if not isinstance(raw, Mapping):
        raise ConfigurationError(
            f"Capabilities for {role}.{resource} must be a mapping of action → bool",
            role=role,
            resource=resource,
        )
    flags: dict[str, bool] = {}
    for action, value in raw.items():
        if action not in Action.ALL:
            raise ConfigurationError(
                f"Unknown action '{action}' in {role}.{resource}",
                role=role,
                resource=resource,
                action=action,
            )
        if not isinstance(value, bool):
            raise ConfigurationError(
                f"{role}.{resource}.{action} must be true or false, got {value!r}",
                role=role,
                resource=resource,
                action=action,
            )
        flags[action] = value and (resource, action) not in UNSUPPORTED_ACTIONS
    return Capability(**flags)


class PermissionMatrix:
    """Immutable role → CapabilityTable registry.

    Built once from configuration data and never mutated afterwards;
    the input mapping is copied, so later edits to it have no effect.
    Every shop role gets a complete table even when the configuration
    omits it.

    Args:
        tables: Raw ``role → resource → {action: bool}`` data.

    Raises:
        ConfigurationError: Unknown resource/action keys or non-boolean flags.

    Example::

        matrix = PermissionMatrix(DEFAULT_SHOP_PERMISSIONS)
        matrix.matrix_for("sales")["sales"]["write"]    # True
        matrix.matrix_for("sales")["staff"]["write"]    # False
        matrix.matrix_for("janitor")["sales"]["read"]   # False (unknown role)
    """

    __slots__ = ("_tables",)

    def __init__(self, tables: Mapping[str, Mapping[str, Any]]) -> None:
        parsed: dict[str, CapabilityTable] = {role: EMPTY_TABLE for role in sorted(Role.SHOP_ROLES)}
        for raw_role, resources in tables.items():
            role = Role.normalize(raw_role)
            if not isinstance(resources, Mapping):
                raise ConfigurationError(f"Entry for role '{raw_role}' must be a mapping", role=raw_role)
            entries: dict[str, Capability] = {}
            for resource, raw in resources.items():
                if resource not in Resource.ALL:
                    raise ConfigurationError(
                        f"Unknown resource '{resource}' for role '{raw_role}'",
                        role=raw_role,
                        resource=resource,
                    )
                entries[resource] = _parse_capability(role, resource, raw)
            parsed[role] = CapabilityTable(entries)
        self._tables = MappingProxyType(parsed)

    @classmethod
    def from_json_file(cls, path: str | Path) -> PermissionMatrix:
        """Load a matrix from a JSON file shaped like :data:`DEFAULT_SHOP_PERMISSIONS`."""
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigurationError(f"Cannot read permission matrix: {e}", path=str(path)) from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Permission matrix is not valid JSON: {e}", path=str(path)) from e
        if not isinstance(data, dict):
            raise ConfigurationError("Permission matrix must be a JSON object", path=str(path))
        return cls(data)

    @property
    def roles(self) -> frozenset[str]:
        return frozenset(self._tables)

    def matrix_for(self, role: str | None) -> CapabilityTable:
        """Return the capability table for ``role``; all-false if unknown."""
        return self._tables.get(Role.normalize(role), EMPTY_TABLE)

    def to_dict(self) -> dict[str, dict[str, dict[str, bool]]]:
        return {role: table.to_dict() for role, table in self._tables.items()}

    def __repr__(self) -> str:
        return f"PermissionMatrix(roles={sorted(self._tables)!r})"


DEFAULT_MATRIX = PermissionMatrix(DEFAULT_SHOP_PERMISSIONS)


def matrix_for(role: str | None) -> CapabilityTable:
    """Look up ``role`` in the built-in :data:`DEFAULT_MATRIX`."""
    return DEFAULT_MATRIX.matrix_for(role)


__all__ = [
    "DEFAULT_MATRIX",
    "DEFAULT_SHOP_PERMISSIONS",
    "EMPTY_TABLE",
    "NO_CAPABILITY",
    "UNSUPPORTED_ACTIONS",
    "Capability",
    "CapabilityTable",
    "PermissionMatrix",
    "matrix_for",
]
