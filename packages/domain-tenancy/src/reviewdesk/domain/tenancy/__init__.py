"""Reviewdesk Domain Tenancy -- tenant store and cached tenant view."""

from reviewdesk.domain.tenancy.tenant_store import (
    TENANT_STATE_VERSION,
    TENANT_STORAGE_KEY,
    PersistedTenantState,
    TenantStore,
    TenantStoreSettings,
)
from reviewdesk.domain.tenancy.tenant_view import (
    AppendTenant,
    PatchTenant,
    RemoveTenant,
    ReplaceTenants,
    SelectTenant,
    TenantAction,
    TenantView,
    reduce_tenant_view,
)

__all__ = [
    "TENANT_STATE_VERSION",
    "TENANT_STORAGE_KEY",
    "AppendTenant",
    "PatchTenant",
    "PersistedTenantState",
    "RemoveTenant",
    "ReplaceTenants",
    "SelectTenant",
    "TenantAction",
    "TenantStore",
    "TenantStoreSettings",
    "TenantView",
    "reduce_tenant_view",
]
