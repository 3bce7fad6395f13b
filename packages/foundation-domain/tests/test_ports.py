"""Tests for port protocol conformance."""

from __future__ import annotations

import pytest

from reviewdesk.foundation.domain.identity_value_objects import Profile, ProfileUpdate, Session, User
from reviewdesk.foundation.domain.ports import (
    AuthResult,
    IdentityServicePort,
    ProfileServicePort,
    StateStoragePort,
    TenantServicePort,
)
from reviewdesk.foundation.domain.tenant_value_objects import (
    Tenant,
    TenantCreate,
    TenantMetrics,
    TenantUpdate,
)


class _FakeProfileService:
    """Fake profile service that conforms to ProfileServicePort protocol."""

    async def get_profile(self, user_id: str) -> Profile:
        return Profile(id=user_id, email=f"{user_id}@example.com")

    async def update_profile(self, user_id: str, updates: ProfileUpdate) -> None:
        return None


class _FakeTenantService:
    """Fake tenant service that conforms to TenantServicePort protocol."""

    async def get_current_tenant(self) -> Tenant:
        return Tenant(id="t1", name="Acme")

    async def get_all_tenants(self) -> list[Tenant]:
        return []

    async def get_tenant_by_id(self, tenant_id: str) -> Tenant:
        return Tenant(id=tenant_id, name="Acme")

    async def get_tenant_metrics(self, tenant_id: str) -> TenantMetrics:
        return TenantMetrics()

    async def create_tenant(self, data: TenantCreate) -> Tenant:
        return Tenant(id="new", name=data.name)

    async def update_tenant(self, tenant_id: str, updates: TenantUpdate) -> Tenant:
        return Tenant(id=tenant_id, name="Acme")

    async def delete_tenant(self, tenant_id: str) -> None:
        return None


class _DictStorage:
    def __init__(self) -> None:
        self.items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


@pytest.mark.unit
class TestPortConformance:
    def test_profile_service(self) -> None:
        assert isinstance(_FakeProfileService(), ProfileServicePort)

    def test_tenant_service(self) -> None:
        assert isinstance(_FakeTenantService(), TenantServicePort)

    def test_state_storage(self) -> None:
        assert isinstance(_DictStorage(), StateStoragePort)

    def test_incomplete_identity_service_is_rejected(self) -> None:
        class _SignInOnly:
            async def sign_in(self, email: str, password: str) -> AuthResult:
                raise NotImplementedError

        assert not isinstance(_SignInOnly(), IdentityServicePort)


@pytest.mark.unit
class TestAuthResult:
    def test_signup_without_confirmation_has_no_session(self) -> None:
        result = AuthResult(user=User(id="u1"), session=None)
        assert result.session is None

    def test_session_result(self) -> None:
        session = Session(access_token="a", expires_at=1)
        result = AuthResult(user=User(id="u1"), session=session)
        assert result.session is session
