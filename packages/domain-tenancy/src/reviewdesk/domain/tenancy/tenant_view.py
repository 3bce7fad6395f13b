"""Materialized view of the tenants cached by the tenant store.

Every write to the cached collection, whether a wholesale replace after a
fetch or an optimistic patch after a remote mutation, goes through
:func:`reduce_tenant_view`. The reconciliation policy is:

- patch on success: create appends, update patches, delete removes, each
  applied to ``tenants``, ``available`` and ``current`` together;
- nothing on failure: callers only dispatch after the remote call succeeded;
- periodic full refresh: ``ReplaceTenants`` overwrites everything.

Example:
    >>> view = TenantView()
    >>> view = reduce_tenant_view(view, ReplaceTenants(tenants=(t1,), current=t1))
    >>> view = reduce_tenant_view(view, PatchTenant(t1.with_updates(update)))
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reviewdesk.foundation.domain import Tenant


@dataclass(frozen=True, slots=True)
class TenantView:
    """Cached tenant collections.

    Attributes:
        tenants: Tenants known to the store.
        available: Tenants the principal may switch between.
        current: Active tenant, if any.
    """

    tenants: tuple[Tenant, ...] = ()
    available: tuple[Tenant, ...] = ()
    current: Tenant | None = None

    def find(self, tenant_id: str) -> Tenant | None:
        for tenant in self.tenants:
            if tenant.id == tenant_id:
                return tenant
        return None


@dataclass(frozen=True, slots=True)
class ReplaceTenants:
    """Overwrite the whole view with freshly fetched data.

    ``available`` defaults to ``tenants``.
    """

    tenants: tuple[Tenant, ...]
    current: Tenant | None = None
    available: tuple[Tenant, ...] | None = None


@dataclass(frozen=True, slots=True)
class AppendTenant:
    tenant: Tenant


@dataclass(frozen=True, slots=True)
class PatchTenant:
    """Swap in the updated copy of a tenant wherever it appears."""

    tenant: Tenant


@dataclass(frozen=True, slots=True)
class RemoveTenant:
    tenant_id: str


@dataclass(frozen=True, slots=True)
class SelectTenant:
    tenant: Tenant | None


TenantAction = ReplaceTenants | AppendTenant | PatchTenant | RemoveTenant | SelectTenant


def _patched(tenants: tuple[Tenant, ...], tenant: Tenant) -> tuple[Tenant, ...]:
    return tuple(tenant if t.id == tenant.id else t for t in tenants)


def reduce_tenant_view(view: TenantView, action: TenantAction) -> TenantView:
    """Apply one action to the view and return the new view.

    Raises:
        TypeError: If ``action`` is not a known tenant action.
    """
    match action:
        case ReplaceTenants(tenants=tenants, current=current, available=available):
            return TenantView(
                tenants=tuple(tenants),
                available=tuple(tenants if available is None else available),
                current=current,
            )
        case AppendTenant(tenant=tenant):
            return replace(
                view,
                tenants=(*view.tenants, tenant),
                available=(*view.available, tenant),
            )
        case PatchTenant(tenant=tenant):
            current = view.current
            if current is not None and current.id == tenant.id:
                current = tenant
            return TenantView(
                tenants=_patched(view.tenants, tenant),
                available=_patched(view.available, tenant),
                current=current,
            )
        case RemoveTenant(tenant_id=tenant_id):
            current = view.current
            if current is not None and current.id == tenant_id:
                current = None
            return TenantView(
                tenants=tuple(t for t in view.tenants if t.id != tenant_id),
                available=tuple(t for t in view.available if t.id != tenant_id),
                current=current,
            )
        case SelectTenant(tenant=tenant):
            return replace(view, current=tenant)
    msg = f"Unknown tenant action: {action!r}"
    raise TypeError(msg)
