"""Shared fixtures for domain-identity tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from reviewdesk.foundation.domain import Profile, Role, Session, Tenant, TenantStatus, User
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


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def storage() -> DictStorage:
    return DictStorage()


@pytest.fixture()
def user() -> User:
    return User(id="u1", email="ada@example.com")


@pytest.fixture()
def session(user: User) -> Session:
    return Session(
        access_token="at-1",
        refresh_token="rt-1",
        expires_at=int(NOW) + 3600,
        user=user,
    )


@pytest.fixture()
def tenant() -> Tenant:
    return Tenant(id="t1", name="Acme", status=TenantStatus.ACTIVE)


@pytest.fixture()
def profile() -> Profile:
    return Profile(id="u1", email="ada@example.com", role=Role.USER, tenant_id="t1")


@pytest.fixture()
def identity(session: Session) -> MagicMock:
    """Identity service mock with a live session by default."""
    mock = MagicMock(spec=IdentityServicePort)
    mock.get_session.return_value = session
    mock.get_user.return_value = session.user
    return mock


@pytest.fixture()
def profiles(profile: Profile) -> MagicMock:
    mock = MagicMock(spec=ProfileServicePort)
    mock.get_profile.return_value = profile
    return mock


@pytest.fixture()
def tenants(tenant: Tenant) -> MagicMock:
    mock = MagicMock(spec=TenantServicePort)
    mock.get_tenant_by_id.return_value = tenant
    return mock
