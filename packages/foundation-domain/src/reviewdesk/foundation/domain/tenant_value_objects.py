"""Records for tenant organizations and their usage metrics.

Tenants are fetched from the remote tenant service and cached by the tenant
store. Local mutation happens only through :meth:`Tenant.with_updates`,
which returns a patched copy after a remote update succeeded.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class TenantStatus(StrEnum):
    """Tenant lifecycle states as stored remotely.

    Uses StrEnum for native JSON serialization.
    """

    ACTIVE = "active"
    SUSPENDED = "suspended"
    PENDING = "pending"


class PlanType(StrEnum):
    """Subscription plan tier."""

    BASIC = "basic"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


class TenantFeatures(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    analytics: bool = False
    custom_domain: bool = False
    api_access: bool = False
    priority_support: bool = False


class TenantLimits(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    max_users: int
    max_reviews: int
    storage_limit: int


class TenantSettings(BaseModel):
    """Nested tenant settings: feature flags, usage limits, descriptive text."""

    model_config = ConfigDict(frozen=True, extra="allow")

    description: str | None = None
    features: TenantFeatures | None = None
    limits: TenantLimits | None = None
    review_form_url: str | None = None


class Tenant(BaseModel):
    """Customer organization, the unit of data isolation.

    Attributes:
        id: Tenant identifier.
        name: Display name.
        domain: Optional custom domain.
        status: Lifecycle state.
        plan_type: Subscription tier.
        settings: Feature flags, limits and description.
        created_at: Remote creation timestamp.
        updated_at: Remote update timestamp.
        created_by: User id of the creator, if recorded.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    name: str
    domain: str | None = None
    status: TenantStatus = TenantStatus.PENDING
    plan_type: PlanType = PlanType.BASIC
    settings: TenantSettings | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str | None = None

    @field_validator("settings", mode="before")
    @classmethod
    def empty_settings_to_none(cls, v: Any) -> Any:
        """The backend stores ``{}`` for tenants that never saved settings."""
        if v == {}:
            return None
        return v

    @property
    def is_active(self) -> bool:
        return self.status is TenantStatus.ACTIVE

    def with_updates(self, updates: TenantUpdate) -> Tenant:
        """Return a copy with the explicitly set fields of ``updates`` applied.

        Validates the merged result, so a bad patch raises instead of
        producing an inconsistent copy.
        """
        merged = self.model_dump()
        merged.update(updates.model_dump(exclude_unset=True))
        return Tenant.model_validate(merged)


class TenantCreate(BaseModel):
    """Payload for creating a tenant."""

    model_config = ConfigDict(extra="forbid")

    name: str
    domain: str | None = None
    plan_type: PlanType = PlanType.BASIC
    settings: TenantSettings | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            msg = "Tenant name cannot be empty"
            raise ValueError(msg)
        return stripped

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class TenantUpdate(BaseModel):
    """Partial tenant update. Only explicitly set fields are sent and patched."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    domain: str | None = None
    status: TenantStatus | None = None
    plan_type: PlanType | None = None
    settings: TenantSettings | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


class TenantMetrics(BaseModel):
    """Point-in-time usage snapshot for one tenant. Replaced, never merged."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    total_users: int = 0
    total_reviews: int = 0
    active_users: int = 0
    storage_used: int = 0
    api_calls_count: int = 0
    last_activity: datetime | None = None
