"""Shared fixtures for domain-tenancy tests."""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import MagicMock

import pytest

from reviewdesk.foundation.domain import (
    PlanType,
    Profile,
    Role,
    Tenant,
    TenantMetrics,
    TenantStatus,
    User,
)
from reviewdesk.foundation.domain.ports import (
    IdentityServicePort,
    ProfileServicePort,
    TenantServicePort,
)

NOW = 1_700_000_000.0


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class DictStorage:
    """StateStoragePort backed by a plain dict."""

    def __init__(self) -> None:
        self.items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


def make_tenant(tenant_id: str, name: str, **fields: object) -> Tenant:
    return Tenant(id=tenant_id, name=name, status=TenantStatus.ACTIVE, **fields)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def storage() -> DictStorage:
    return DictStorage()


@pytest.fixture()
def t1() -> Tenant:
    return make_tenant("t1", "Acme", plan_type=PlanType.PREMIUM)


@pytest.fixture()
def t2() -> Tenant:
    return make_tenant("t2", "Beta")


@pytest.fixture()
def identity() -> MagicMock:
    mock = MagicMock(spec=IdentityServicePort)
    mock.get_user.return_value = User(id="u1", email="ada@example.com")
    return mock


@pytest.fixture()
def profiles() -> MagicMock:
    mock = MagicMock(spec=ProfileServicePort)
    mock.get_profile.return_value = Profile(
        id="u1", email="ada@example.com", role=Role.USER, tenant_id="t1"
    )
    return mock


@pytest.fixture()
def tenants(t1: Tenant, t2: Tenant) -> MagicMock:
    mock = MagicMock(spec=TenantServicePort)
    mock.get_current_tenant.return_value = t1
    mock.get_all_tenants.return_value = [t1, t2]
    mock.get_tenant_by_id.return_value = t1
    mock.get_tenant_metrics.return_value = TenantMetrics(total_users=4, total_reviews=12)
    return mock


@pytest.fixture()
def as_role(profiles: MagicMock) -> Callable[..., None]:
    """Make the signed-in profile hold `role`."""

    def apply(role: Role, tenant_id: str | None = "t1") -> None:
        profiles.get_profile.return_value = Profile(
            id="u1", email="ada@example.com", role=role, tenant_id=tenant_id
        )

    return apply
