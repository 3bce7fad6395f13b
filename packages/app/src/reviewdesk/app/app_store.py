"""Unified read model and action surface over the session and tenant stores.

Consumers read one :class:`AppView` instead of two stores, and drive the
joint lifecycle through :class:`AppStore`:

- ``initialize()`` starts both store initializers concurrently; each no-ops
  while its preconditions are unmet;
- ``sign_out()`` signs out and then resets the tenant store;
- ``reset()`` resets both stores;
- ``aclose()`` releases the remote clients and storage the store owns.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from reviewdesk.domain.identity import SessionStore
    from reviewdesk.domain.tenancy import TenantStore
    from reviewdesk.foundation.domain import (
        ActionResult,
        Profile,
        Session,
        Tenant,
        TenantMetrics,
        User,
    )

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AppView:
    """Point-in-time combination of both stores' state."""

    user: User | None
    session: Session | None
    profile: Profile | None
    is_authenticated: bool
    is_email_verified: bool
    current_tenant: Tenant | None
    tenants: tuple[Tenant, ...]
    available_tenants: tuple[Tenant, ...]
    metrics: TenantMetrics | None
    loading: bool
    error: str | None
    is_admin: bool
    is_super_admin: bool
    is_tenant_admin: bool
    current_tenant_id: str | None
    current_tenant_name: str | None
    is_tenant_active: bool


class AppStore:
    """Composition of the session store and the tenant store.

    Args:
        session: Session store.
        tenants: Tenant store.
        resources: Exit stack holding clients and storage to release on
            :meth:`aclose`. Owned by this store.
    """

    def __init__(
        self,
        session: SessionStore,
        tenants: TenantStore,
        resources: AsyncExitStack | None = None,
    ) -> None:
        self._session = session
        self._tenants = tenants
        self._resources = resources or AsyncExitStack()

    @property
    def session_store(self) -> SessionStore:
        return self._session

    @property
    def tenant_store(self) -> TenantStore:
        return self._tenants

    def snapshot(self) -> AppView:
        session = self._session
        tenants = self._tenants
        return AppView(
            user=session.user,
            session=session.session,
            profile=session.profile,
            is_authenticated=session.is_authenticated,
            is_email_verified=session.is_email_verified,
            current_tenant=tenants.current_tenant,
            tenants=tenants.tenants,
            available_tenants=tenants.available_tenants,
            metrics=tenants.metrics,
            loading=session.loading or tenants.loading,
            error=session.error if session.error is not None else tenants.error,
            is_admin=session.is_admin,
            is_super_admin=session.is_super_admin,
            is_tenant_admin=session.is_tenant_admin,
            current_tenant_id=tenants.current_tenant_id,
            current_tenant_name=tenants.current_tenant_name,
            is_tenant_active=tenants.is_tenant_active,
        )

    def subscribe(self, listener: Callable[[AppView], None]) -> Callable[[], None]:
        """Call ``listener`` with a fresh view after either store changes.

        Returns:
            A callable that removes the listener from both stores.
        """

        def on_change(_store: Any) -> None:
            listener(self.snapshot())

        unsubscribers = [self._session.subscribe(on_change), self._tenants.subscribe(on_change)]

        def unsubscribe() -> None:
            for unsub in unsubscribers:
                unsub()

        return unsubscribe

    # -- Lifecycle ----------------------------------------------------------

    async def initialize(self) -> None:
        """Run both store initializers concurrently."""
        await asyncio.gather(self._session.initialize(), self._tenants.initialize())
        logger.info(
            "app_initialized",
            extra={
                "authenticated": self._session.is_authenticated,
                "tenant_id": self._tenants.current_tenant_id,
            },
        )

    def reset(self) -> None:
        self._session.reset()
        self._tenants.reset()

    async def aclose(self) -> None:
        await self._resources.aclose()

    async def __aenter__(self) -> AppStore:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # -- Session actions ----------------------------------------------------

    async def sign_in(self, email: str, password: str) -> ActionResult[User]:
        """Sign in, then scope the tenant store to the new principal."""
        result = await self._session.sign_in(email, password)
        if result.success:
            await self._tenants.refresh_tenants()
        return result

    async def sign_out(self) -> None:
        await self._session.sign_out()
        self._tenants.reset()

    async def sign_up(self, email: str, password: str, full_name: str) -> ActionResult[User]:
        return await self._session.sign_up(email, password, full_name)

    async def refresh_session(self) -> None:
        await self._session.refresh_session()

    async def refresh_profile(self) -> None:
        await self._session.refresh_profile()

    # -- Tenant actions -----------------------------------------------------

    async def switch_tenant(self, tenant_id: str) -> ActionResult[Tenant]:
        return await self._tenants.switch_tenant(tenant_id)

    async def refresh_tenants(self) -> None:
        await self._tenants.refresh_tenants()

    async def refresh_metrics(self) -> None:
        await self._tenants.refresh_metrics()
