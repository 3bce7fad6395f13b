"""Tenant reads and mutations against the ``tenants`` table.

``get_current_tenant`` resolves the signed-in user's profile first and
follows its ``tenant_id``; a profile without one raises
``TenantNotAssignedError``. Usage metrics come from the
``get_tenant_metrics`` remote procedure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from reviewdesk.foundation.domain.exceptions import (
    AuthenticationError,
    RemoteServiceError,
    TenantNotAssignedError,
)
from reviewdesk.foundation.domain.tenant_value_objects import Tenant, TenantMetrics

if TYPE_CHECKING:
    from reviewdesk.foundation.domain.tenant_value_objects import TenantCreate, TenantUpdate
    from reviewdesk.infra.rest.client import RestClient
    from reviewdesk.infra.rest.profile_client import ProfileServiceClient

_TABLE = "tenants"
_METRICS_RPC = "get_tenant_metrics"


class TenantServiceClient:
    """Implements :class:`TenantServicePort` over the REST helper.

    Args:
        rest: REST helper bound to the shared identity client.
        profiles: Profile client used to resolve the caller's tenant linkage.
    """

    def __init__(self, rest: RestClient, profiles: ProfileServiceClient) -> None:
        self._rest = rest
        self._profiles = profiles

    async def get_current_tenant(self) -> Tenant:
        """Fetch the tenant linked to the signed-in user.

        Raises:
            AuthenticationError: If nobody is signed in.
            TenantNotAssignedError: If the user's profile has no tenant_id.
        """
        user = await self._rest.identity.get_user()
        if user is None:
            raise AuthenticationError(
                "No user logged in", auth_error="invalid_token", error_code="MISSING_SESSION"
            )
        profile = await self._profiles.get_profile(user.id)
        if not profile.tenant_id:
            raise TenantNotAssignedError(user.id)
        return await self.get_tenant_by_id(profile.tenant_id)

    async def get_all_tenants(self) -> list[Tenant]:
        rows = await self._rest.select(_TABLE, order="created_at.desc")
        return [self._parse(row) for row in rows]

    async def get_tenant_by_id(self, tenant_id: str) -> Tenant:
        row = await self._rest.select_one(_TABLE, {"id": tenant_id}, resource_type="Tenant")
        return self._parse(row)

    async def get_tenant_metrics(self, tenant_id: str) -> TenantMetrics:
        result = await self._rest.rpc(_METRICS_RPC, {"p_tenant_id": tenant_id})
        # Set-returning functions answer with a one-element list.
        if isinstance(result, list):
            result = result[0] if result else {}
        try:
            return TenantMetrics.model_validate(result or {})
        except PydanticValidationError as exc:
            raise RemoteServiceError(_TABLE, f"Invalid metrics for tenant {tenant_id}") from exc

    async def create_tenant(self, data: TenantCreate) -> Tenant:
        row = await self._rest.insert(_TABLE, data.to_payload())
        return self._parse(row)

    async def update_tenant(self, tenant_id: str, updates: TenantUpdate) -> Tenant:
        row = await self._rest.update(
            _TABLE, {"id": tenant_id}, updates.to_payload(), resource_type="Tenant"
        )
        return self._parse(row)

    async def delete_tenant(self, tenant_id: str) -> None:
        await self._rest.delete(_TABLE, {"id": tenant_id})

    def _parse(self, row: dict[str, Any]) -> Tenant:
        try:
            return Tenant.model_validate(row)
        except PydanticValidationError as exc:
            raise RemoteServiceError(_TABLE, f"Invalid tenant record {row.get('id')}") from exc
