"""Shared fixtures for app tests."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest
import structlog

from reviewdesk.domain.identity import SessionStore
from reviewdesk.domain.tenancy import TenantStore
from reviewdesk.foundation.domain import (
    Profile,
    Role,
    Session,
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
from reviewdesk.infra.auth import get_auth_settings, get_backend_settings
from reviewdesk.infra.observability import get_logging_settings
from reviewdesk.infra.persistence import InMemoryStateStorage

NOW = 1_700_000_000.0


@pytest.fixture(autouse=True)
def _restore_logging():
    """create_app_store configures the root logger; undo it after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()
    get_logging_settings.cache_clear()
    get_backend_settings.cache_clear()
    get_auth_settings.cache_clear()


@pytest.fixture()
def user() -> User:
    return User(id="u1", email="ada@example.com")


@pytest.fixture()
def t1() -> Tenant:
    return Tenant(id="t1", name="Acme", status=TenantStatus.ACTIVE)


@pytest.fixture()
def identity(user: User) -> MagicMock:
    mock = MagicMock(spec=IdentityServicePort)
    session = Session(access_token="at-1", expires_at=int(NOW) + 3600, user=user)
    mock.get_session.return_value = session
    mock.get_user.return_value = user
    return mock


@pytest.fixture()
def profiles() -> MagicMock:
    mock = MagicMock(spec=ProfileServicePort)
    mock.get_profile.return_value = Profile(
        id="u1", email="ada@example.com", role=Role.TENANT_ADMIN, tenant_id="t1"
    )
    return mock


@pytest.fixture()
def tenants(t1: Tenant) -> MagicMock:
    mock = MagicMock(spec=TenantServicePort)
    mock.get_current_tenant.return_value = t1
    mock.get_tenant_by_id.return_value = t1
    mock.get_all_tenants.return_value = [t1]
    mock.get_tenant_metrics.return_value = TenantMetrics(total_users=3)
    return mock


@pytest.fixture()
def storage() -> InMemoryStateStorage:
    return InMemoryStateStorage()


@pytest.fixture()
def session_store(
    identity: MagicMock, profiles: MagicMock, tenants: MagicMock, storage: InMemoryStateStorage
) -> SessionStore:
    return SessionStore(identity, profiles, tenants, storage=storage, clock=lambda: NOW)


@pytest.fixture()
def tenant_store(
    identity: MagicMock, profiles: MagicMock, tenants: MagicMock, storage: InMemoryStateStorage
) -> TenantStore:
    return TenantStore(tenants, identity, profiles, storage=storage, clock=lambda: NOW)
