"""Tenant store: active tenant, switchable tenants and usage metrics.

Scope follows the principal's role, read through a fresh remote profile
lookup on every :meth:`TenantStore.refresh_tenants` call:

- super admins see the full platform tenant list;
- everyone else sees exactly their own tenant;
- a user not assigned to any tenant gets empty state and no error.

Cached collections are a :class:`TenantView` updated only through
:func:`reduce_tenant_view`. Mutations patch the view after the remote call
succeeds and leave it untouched when it fails.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

import pydantic
from pydantic import BaseModel

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
from reviewdesk.foundation.application import (
    REMOTE_ERRORS,
    BaseStore,
    StatePersister,
    describe_error,
)
from reviewdesk.foundation.domain import (
    ActionResult,
    Freshness,
    Profile,
    Snapshot,
    Tenant,
    TenantCreate,
    TenantMetrics,
    TenantNotAssignedError,
    TenantSettings,
    TenantStatus,
    TenantUpdate,
    is_super_admin,
)

if TYPE_CHECKING:
    from reviewdesk.foundation.domain.ports import (
        IdentityServicePort,
        ProfileServicePort,
        StateStoragePort,
        TenantServicePort,
    )

logger = logging.getLogger(__name__)

TENANT_STORAGE_KEY = "tenant-storage"
TENANT_STATE_VERSION = 1

TENANT_NOT_FOUND_MESSAGE = "Tenant not found"
INVALID_TENANT_MESSAGE = "Invalid tenant"
BACKEND_NOT_CONFIGURED_MESSAGE = "Backend not configured"


@dataclass(frozen=True, slots=True)
class TenantStoreSettings:
    """Caching knobs for the tenant store.

    Attributes:
        cache_expiry_seconds: How long a full tenant fetch stays valid.
    """

    cache_expiry_seconds: float = 300


class PersistedTenantState(BaseModel):
    """Subset of the tenant store that survives restarts."""

    current_tenant: Tenant | None = None
    selected_tenant_id: str | None = None
    last_fetch: float = 0


class TenantStore(BaseStore):
    """Tenant context for the signed-in principal.

    Args:
        tenants: Remote tenant service.
        identity: Remote identity service, to find the current user.
        profiles: Remote profile lookup, to resolve the user's role.
        storage: Durable key-value area. Without it nothing is persisted.
        settings: Cache window; defaults to :class:`TenantStoreSettings`.
        backend_configured: False when the remote backend has no usable
            URL or key; :meth:`initialize` then skips all remote calls.
        clock: Returns the current time as epoch seconds.

    Attributes:
        view: Cached tenants, switchable tenants and the active tenant.
        current_freshness: Whether ``current_tenant`` was confirmed by the
            last fetch or kept after a failed refresh.
        metrics: Usage snapshot of the active tenant.
        selected_tenant_id: Tenant picked in the switcher.
        show_tenant_switcher: Switcher visibility.
        last_fetch: Epoch seconds of the last full tenant fetch, 0 if none.
        cache_expiry: Seconds a full fetch stays valid.
        switching: True while :meth:`switch_tenant` is in flight.
    """

    persisted_fields: ClassVar[frozenset[str]] = frozenset(
        {"view", "selected_tenant_id", "last_fetch"}
    )

    def __init__(
        self,
        tenants: TenantServicePort,
        identity: IdentityServicePort,
        profiles: ProfileServicePort,
        storage: StateStoragePort | None = None,
        settings: TenantStoreSettings | None = None,
        backend_configured: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        persister = (
            StatePersister(storage, TENANT_STORAGE_KEY, PersistedTenantState, TENANT_STATE_VERSION)
            if storage is not None
            else None
        )
        super().__init__(persister)
        self._tenants = tenants
        self._identity = identity
        self._profiles = profiles
        self._settings = settings or TenantStoreSettings()
        self._backend_configured = backend_configured
        self._clock = clock
        self._initializing = False
        # Bumped by reset(); remote results fetched under an older epoch are
        # discarded.
        self._epoch = 0
        self._apply_defaults()
        self._rehydrate()

    # -- Derived state ------------------------------------------------------

    @property
    def current_tenant(self) -> Tenant | None:
        return self.view.current

    @property
    def tenants(self) -> tuple[Tenant, ...]:
        return self.view.tenants

    @property
    def available_tenants(self) -> tuple[Tenant, ...]:
        return self.view.available

    @property
    def current_tenant_snapshot(self) -> Snapshot[Tenant]:
        return Snapshot(
            value=self.view.current,
            freshness=self.current_freshness,
            fetched_at=self.last_fetch or None,
        )

    @property
    def current_tenant_id(self) -> str | None:
        return self.view.current.id if self.view.current else None

    @property
    def current_tenant_name(self) -> str | None:
        return self.view.current.name if self.view.current else None

    @property
    def current_tenant_status(self) -> TenantStatus | None:
        return self.view.current.status if self.view.current else None

    @property
    def is_tenant_active(self) -> bool:
        return self.view.current is not None and self.view.current.is_active

    # -- Cache --------------------------------------------------------------

    def is_cache_valid(self) -> bool:
        return self._clock() - self.last_fetch < self.cache_expiry

    def clear_cache(self) -> None:
        self._set(last_fetch=0)

    # -- Lifecycle ----------------------------------------------------------

    async def initialize(self) -> None:
        """Load tenants unless a valid, non-empty cache is already present.

        A call made while another initialization is in flight returns
        immediately.
        """
        if self._initializing:
            return
        if not self._backend_configured:
            logger.warning("tenant_initialize_skipped", extra={"reason": "backend_not_configured"})
            self._dispatch(
                ReplaceTenants(tenants=()),
                metrics=None,
                current_freshness=Freshness.ABSENT,
                error=BACKEND_NOT_CONFIGURED_MESSAGE,
                loading=False,
            )
            return
        if self.is_cache_valid() and self.view.tenants:
            self._set(loading=False)
            return

        self._initializing = True
        epoch = self._epoch
        try:
            await self.refresh_tenants()
        finally:
            if epoch == self._epoch:
                self._initializing = False

    def reset(self) -> None:
        """Return to the uninitialized defaults and forget persisted state.

        Fetches and mutations still in flight finish without touching the
        store.
        """
        self._initializing = False
        self._epoch += 1
        self._apply_defaults()
        self._clear_persisted()
        self._notify()

    # -- Fetching -----------------------------------------------------------

    async def refresh_tenants(self) -> None:
        """Fetch the principal's tenant and, for super admins, all tenants.

        On failure the cached tenants are left as they were and ``error``
        records the reason. Results arriving after :meth:`reset` are dropped.
        """
        epoch = self._epoch
        self._set(loading=True, error=None)
        profile: Profile | None = None
        current: Tenant | None = None
        everything: tuple[Tenant, ...] | None = None
        try:
            user = await self._identity.get_user()
            if user is not None:
                profile = await self._profiles.get_profile(user.id)
                try:
                    current = await self._tenants.get_current_tenant()
                except TenantNotAssignedError:
                    current = None
                if is_super_admin(profile.role):
                    everything = tuple(await self._tenants.get_all_tenants())
        except REMOTE_ERRORS as exc:
            if not self._is_stale(epoch):
                logger.warning("tenant_refresh_failed", extra={"error": describe_error(exc)})
                self._set(error=describe_error(exc), loading=False)
            return

        if self._is_stale(epoch):
            logger.info("tenant_refresh_discarded")
            return
        if everything is None and current is None:
            if profile is not None:
                logger.info("tenant_not_assigned", extra={"user_id": profile.id})
            self._clear_tenants()
            self._set(loading=False)
            return

        scope = everything if everything is not None else (current,)
        action = ReplaceTenants(tenants=scope, current=current)
        changes: dict[str, Any] = {
            "loading": False,
            "last_fetch": self._clock(),
            "current_freshness": Freshness.FRESH if current else Freshness.ABSENT,
        }
        if current is not None:
            changes["selected_tenant_id"] = current.id
        self._dispatch(action, **changes)

    async def refresh_current_tenant(self) -> None:
        """Re-read the active tenant; on failure keep it and mark it stale."""
        current = self.view.current
        if current is None:
            return
        epoch = self._epoch
        try:
            tenant = await self._tenants.get_tenant_by_id(current.id)
        except REMOTE_ERRORS as exc:
            logger.warning(
                "current_tenant_refresh_failed",
                extra={"tenant_id": current.id, "error": describe_error(exc)},
            )
            if not self._is_stale(epoch):
                self._set(current_freshness=Freshness.STALE)
            return
        if not self._is_stale(epoch):
            self._dispatch(PatchTenant(tenant), current_freshness=Freshness.FRESH)

    async def refresh_metrics(self) -> None:
        """Replace the metrics of the active tenant. Failures are logged only."""
        current = self.view.current
        if current is None:
            return
        epoch = self._epoch
        try:
            metrics = await self._tenants.get_tenant_metrics(current.id)
        except REMOTE_ERRORS as exc:
            logger.warning(
                "tenant_metrics_refresh_failed",
                extra={"tenant_id": current.id, "error": describe_error(exc)},
            )
            return
        # The active tenant may have changed while the metrics were in flight.
        if not self._is_stale(epoch) and self.current_tenant_id == current.id:
            self._set(metrics=metrics)

    async def switch_tenant(self, tenant_id: str) -> ActionResult[Tenant]:
        """Activate a tenant that is already cached, then load its metrics.

        Only cached tenants can be activated; call :meth:`refresh_tenants`
        first if the target is not in ``tenants``.
        """
        tenant = self.view.find(tenant_id)
        if tenant is None:
            return ActionResult.fail(TENANT_NOT_FOUND_MESSAGE)

        self._set(switching=True, loading=True, error=None)
        epoch = self._epoch
        try:
            self._dispatch(
                SelectTenant(tenant),
                selected_tenant_id=tenant.id,
                current_freshness=Freshness.FRESH,
                metrics=None,
            )
            await self.refresh_metrics()
        finally:
            if not self._is_stale(epoch):
                self._set(switching=False, loading=False)
        logger.info("tenant_switched", extra={"tenant_id": tenant.id})
        return ActionResult.ok(tenant)

    # -- Mutations ----------------------------------------------------------

    async def create_tenant(self, data: TenantCreate) -> ActionResult[Tenant]:
        epoch = self._epoch
        self._set(loading=True, error=None)
        try:
            tenant = await self._tenants.create_tenant(data)
        except REMOTE_ERRORS as exc:
            return self._mutation_failed("create", exc, epoch)
        if not self._is_stale(epoch):
            self._dispatch(AppendTenant(tenant), loading=False)
        logger.info("tenant_created", extra={"tenant_id": tenant.id})
        return ActionResult.ok(tenant)

    async def update_tenant(self, tenant_id: str, updates: TenantUpdate) -> ActionResult[Tenant]:
        """Update a tenant remotely, then patch every cached copy of it."""
        epoch = self._epoch
        self._set(loading=True, error=None)
        try:
            remote = await self._tenants.update_tenant(tenant_id, updates)
        except REMOTE_ERRORS as exc:
            return self._mutation_failed("update", exc, epoch, tenant_id)
        if self._is_stale(epoch):
            return ActionResult.ok(remote)

        cached = self.view.find(tenant_id) or (
            self.view.current if self.current_tenant_id == tenant_id else None
        )
        if cached is None:
            self._set(loading=False)
            return ActionResult.ok(remote)
        patched = cached.with_updates(updates)
        self._dispatch(PatchTenant(patched), loading=False)
        return ActionResult.ok(patched)

    async def delete_tenant(self, tenant_id: str) -> ActionResult[None]:
        """Delete a tenant remotely, then drop it from every cached list.

        Deleting the active tenant also clears its metrics and the switcher
        selection.
        """
        epoch = self._epoch
        self._set(loading=True, error=None)
        try:
            await self._tenants.delete_tenant(tenant_id)
        except REMOTE_ERRORS as exc:
            return self._mutation_failed("delete", exc, epoch, tenant_id)
        logger.info("tenant_deleted", extra={"tenant_id": tenant_id})
        if self._is_stale(epoch):
            return ActionResult.ok()

        changes: dict[str, Any] = {"loading": False}
        if self.current_tenant_id == tenant_id:
            changes.update(metrics=None, current_freshness=Freshness.ABSENT)
        if tenant_id in (self.current_tenant_id, self.selected_tenant_id):
            changes["selected_tenant_id"] = None
        self._dispatch(RemoveTenant(tenant_id), **changes)
        return ActionResult.ok()

    async def update_tenant_settings(
        self, tenant_id: str, settings: Mapping[str, Any] | TenantSettings
    ) -> ActionResult[Tenant]:
        """Merge ``settings`` into the active tenant's settings and save them."""
        current = self.view.current
        if current is None or current.id != tenant_id:
            return ActionResult.fail(INVALID_TENANT_MESSAGE)

        if isinstance(settings, TenantSettings):
            settings = settings.model_dump(exclude_unset=True)
        merged = current.settings.model_dump(exclude_none=True) if current.settings else {}
        merged.update(settings)
        try:
            updates = TenantUpdate(settings=TenantSettings.model_validate(merged))
        except pydantic.ValidationError as exc:
            return ActionResult.fail(str(exc))
        return await self.update_tenant(tenant_id, updates)

    # -- UI state -----------------------------------------------------------

    def set_selected_tenant_id(self, tenant_id: str | None) -> None:
        self._set(selected_tenant_id=tenant_id)

    def toggle_tenant_switcher(self) -> None:
        self._set(show_tenant_switcher=not self.show_tenant_switcher)

    def set_show_tenant_switcher(self, show: bool) -> None:
        self._set(show_tenant_switcher=show)

    # -- Internals ----------------------------------------------------------

    def _dispatch(self, action: TenantAction, **changes: Any) -> None:
        self._set(view=reduce_tenant_view(self.view, action), **changes)

    def _clear_tenants(self) -> None:
        self._dispatch(
            ReplaceTenants(tenants=()),
            metrics=None,
            current_freshness=Freshness.ABSENT,
            error=None,
        )

    def _is_stale(self, epoch: int) -> bool:
        return epoch != self._epoch

    def _mutation_failed(
        self, operation: str, exc: Exception, epoch: int, tenant_id: str | None = None
    ) -> ActionResult[Any]:
        message = describe_error(exc)
        logger.warning(
            "tenant_mutation_failed",
            extra={"operation": operation, "tenant_id": tenant_id, "error": message},
        )
        if not self._is_stale(epoch):
            # The remote row may or may not have changed, so the next
            # initialize() must fetch again.
            self._set(error=message, loading=False, last_fetch=0)
        return ActionResult.fail(message)

    def _apply_defaults(self) -> None:
        self.loading = True
        self.error = None
        self.view: TenantView = TenantView()
        self.current_freshness: Freshness = Freshness.ABSENT
        self.metrics: TenantMetrics | None = None
        self.selected_tenant_id: str | None = None
        self.show_tenant_switcher = False
        self.last_fetch: float = 0
        self.cache_expiry: float = self._settings.cache_expiry_seconds
        self.switching = False

    def _rehydrate(self) -> None:
        if self._persister is None:
            return
        state = self._persister.load()
        if state is None:
            return
        self.view = reduce_tenant_view(self.view, SelectTenant(state.current_tenant))
        if state.current_tenant is not None:
            self.current_freshness = Freshness.STALE
        self.selected_tenant_id = state.selected_tenant_id
        self.last_fetch = state.last_fetch

    def _persisted_state(self) -> PersistedTenantState:
        return PersistedTenantState(
            current_tenant=self.view.current,
            selected_tenant_id=self.selected_tenant_id,
            last_fetch=self.last_fetch,
        )
