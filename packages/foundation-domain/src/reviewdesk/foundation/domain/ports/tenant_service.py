"""Port interface for the remote tenant service.

Example:
    >>> from reviewdesk.foundation.domain.ports import TenantServicePort
    >>> async def tenant_name(service: TenantServicePort, tenant_id: str) -> str:
    ...     return (await service.get_tenant_by_id(tenant_id)).name
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from reviewdesk.foundation.domain.tenant_value_objects import (
        Tenant,
        TenantCreate,
        TenantMetrics,
        TenantUpdate,
    )


@runtime_checkable
class TenantServicePort(Protocol):
    """Port for tenant reads and mutations.

    ``get_all_tenants`` and the mutations are platform-admin operations; the
    remote side enforces that and answers non-admins with an
    ``AuthorizationError``.
    """

    async def get_current_tenant(self) -> Tenant:
        """Fetch the tenant linked to the signed-in principal.

        Raises:
            TenantNotAssignedError: If the principal has no tenant linkage.
        """
        ...

    async def get_all_tenants(self) -> list[Tenant]:
        """List every tenant on the platform."""
        ...

    async def get_tenant_by_id(self, tenant_id: str) -> Tenant:
        """Fetch one tenant.

        Raises:
            NotFoundError: If the tenant does not exist.
        """
        ...

    async def get_tenant_metrics(self, tenant_id: str) -> TenantMetrics:
        """Fetch the current usage snapshot of one tenant."""
        ...

    async def create_tenant(self, data: TenantCreate) -> Tenant:
        """Create a tenant and return the stored record."""
        ...

    async def update_tenant(self, tenant_id: str, updates: TenantUpdate) -> Tenant:
        """Apply a partial update and return the stored record."""
        ...

    async def delete_tenant(self, tenant_id: str) -> None:
        """Delete a tenant."""
        ...
