"""Core data models for shopguard.

These are immutable Pydantic models. Fields accept both snake_case names and
the camelCase keys used by stored user/shop documents (``assignedShops``,
``isRootAdmin``, ...), so records from the identity collaborator can be
validated directly with ``User.model_validate(doc)``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .permissions.constants import Role, ShopStatus

_MODEL_CONFIG = ConfigDict(
    frozen=True,
    populate_by_name=True,
    alias_generator=to_camel,
    extra="ignore",
)


class ShopAssignment(BaseModel):
    """A user's membership in one shop.

    ``shop_name`` is a snapshot taken at assignment time and is not
    re-synced when the shop is renamed.
    """

    model_config = _MODEL_CONFIG

    shop_id: str
    shop_name: str = ""
    role: str = Role.STAFF
    is_owner: bool = False
    assigned_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    assigned_by: Optional[str] = None

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v: Optional[str]) -> str:
        return Role.normalize(v)


class User(BaseModel):
    """User record as supplied by the identity/session collaborator.

    ``role`` is the legacy global role, kept for callers that never pass a
    shop context. ``current_shop`` is a UI default and never an
    authorization input by itself.
    """

    model_config = _MODEL_CONFIG

    uid: str
    role: Optional[str] = Field(default=None, validation_alias=AliasChoices("role", "globalRole"))
    is_root_admin: bool = False
    assigned_shops: tuple[ShopAssignment, ...] = ()
    current_shop: Optional[str] = None
    blocked: bool = False

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v: Optional[str]) -> Optional[str]:
        return Role.normalize(v) or None

    def assignment_for(self, shop_id: str) -> Optional[ShopAssignment]:
        """Return the assignment for ``shop_id``, or None if not a member."""
        for assignment in self.assigned_shops:
            if assignment.shop_id == shop_id:
                return assignment
        return None

    @property
    def shop_ids(self) -> tuple[str, ...]:
        return tuple(a.shop_id for a in self.assigned_shops)

    @property
    def owned_shop_ids(self) -> tuple[str, ...]:
        return tuple(a.shop_id for a in self.assigned_shops if a.is_owner)


class BusinessHours(BaseModel):
    model_config = _MODEL_CONFIG

    open: str = "09:00"
    close: str = "18:00"


class ShopSettings(BaseModel):
    model_config = _MODEL_CONFIG

    currency: str = "THB"
    timezone: str = "Asia/Bangkok"
    business_hours: BusinessHours = Field(default_factory=BusinessHours)


class Shop(BaseModel):
    """Shop (tenant) record from the shop-directory collaborator."""

    model_config = _MODEL_CONFIG

    shop_id: str
    name: str = Field(default="", validation_alias=AliasChoices("name", "shopName"))
    status: str = ShopStatus.ACTIVE
    owner_id: Optional[str] = None
    settings: ShopSettings = Field(default_factory=ShopSettings)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v: str) -> str:
        """Accept any case, reject unknown statuses."""
        status = str(v).strip().lower()
        if status not in ShopStatus.ALL:
            raise ValueError(f"Invalid shop status: {v}. Must be one of {sorted(ShopStatus.ALL)}")
        return status

    @property
    def is_active(self) -> bool:
        return self.status == ShopStatus.ACTIVE


__all__ = [
    "BusinessHours",
    "Shop",
    "ShopAssignment",
    "ShopSettings",
    "User",
]
