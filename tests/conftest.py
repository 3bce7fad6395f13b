"""Shared fixtures for integration tests.

``FakeBackend`` answers the identity, table and RPC endpoints the clients
call, with an in-memory user, profile and tenant set. Tests drive a real
:class:`AppStore` through ``create_app_store`` over ``httpx.MockTransport``.
"""

from __future__ import annotations

import itertools
import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest
import structlog

from reviewdesk.app import AppSettings, AppStore, create_app_store
from reviewdesk.infra.auth import AuthSettings, BackendSettings
from reviewdesk.infra.observability import LoggingSettings, get_logging_settings

BASE_URL = "https://abc.example.co"
ANON_KEY = "anon-key"
NOW = 1_700_000_000.0

_NO_ROWS = {"code": "PGRST116", "message": "JSON object requested, multiple (or no) rows returned"}


def _tenant_row(tenant_id: str, name: str, created_at: str) -> dict[str, Any]:
    return {
        "id": tenant_id,
        "name": name,
        "status": "active",
        "plan_type": "premium",
        "settings": {},
        "created_at": created_at,
        "updated_at": created_at,
    }


class FakeBackend:
    """In-memory stand-in for the hosted identity and REST API."""

    def __init__(self) -> None:
        self.offline = False
        self.requests: list[httpx.Request] = []
        self.passwords = {
            "ada@example.com": ("u1", "pw"),
            "root@example.com": ("u-root", "pw"),
            "nobody@example.com": ("u-none", "pw"),
        }
        self.profiles: dict[str, dict[str, Any]] = {
            "u1": {"id": "u1", "email": "ada@example.com", "role": "user", "tenant_id": "t1"},
            "u-root": {"id": "u-root", "email": "root@example.com", "role": "super_admin"},
            "u-none": {"id": "u-none", "email": "nobody@example.com", "role": "user"},
        }
        self.tenants: dict[str, dict[str, Any]] = {
            "t1": _tenant_row("t1", "Acme", "2024-01-01T00:00:00Z"),
            "t2": _tenant_row("t2", "Beta", "2024-02-01T00:00:00Z"),
        }
        self._tokens: dict[str, str] = {}
        self._counter = itertools.count(1)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.offline:
            raise httpx.ConnectError("connection refused", request=request)
        path = request.url.path
        if path.startswith("/auth/v1/"):
            return self._auth(request, path.removeprefix("/auth/v1/"))
        if path == "/rest/v1/rpc/get_tenant_metrics":
            return httpx.Response(200, json=[{"total_users": 2, "total_reviews": 7}])
        if path == "/rest/v1/profiles":
            return self._single(request, self.profiles)
        if path == "/rest/v1/tenants":
            return self._tenants(request)
        return httpx.Response(404, json={"message": f"unexpected {request.method} {path}"})

    # -- Identity -------------------------------------------------------------

    def _auth(self, request: httpx.Request, endpoint: str) -> httpx.Response:
        if endpoint == "token":
            body = json.loads(request.content)
            if request.url.params["grant_type"] == "password":
                entry = self.passwords.get(body["email"])
                if entry is None or entry[1] != body["password"]:
                    return httpx.Response(
                        400,
                        json={"error": "invalid_grant", "error_description": "Invalid login credentials"},
                    )
                return self._issue(entry[0])
            user_id = self._tokens.get(body["refresh_token"])
            if user_id is None:
                return httpx.Response(
                    400, json={"error": "invalid_grant", "error_description": "Refresh Token Not Found"}
                )
            return self._issue(user_id)
        if endpoint == "logout":
            return httpx.Response(204)
        if endpoint == "user":
            user_id = self._tokens.get(self._bearer(request))
            if user_id is None:
                return httpx.Response(401, json={"msg": "invalid JWT"})
            return httpx.Response(200, json=self._user(user_id))
        return httpx.Response(404, json={"msg": f"unexpected auth endpoint {endpoint}"})

    def _issue(self, user_id: str) -> httpx.Response:
        n = next(self._counter)
        access, refresh = f"at-{n}", f"rt-{n}"
        self._tokens[access] = user_id
        self._tokens[refresh] = user_id
        return httpx.Response(
            200,
            json={
                "access_token": access,
                "refresh_token": refresh,
                "expires_in": 3600,
                "token_type": "bearer",
                "user": self._user(user_id),
            },
        )

    def _user(self, user_id: str) -> dict[str, Any]:
        return {"id": user_id, "email": self.profiles[user_id]["email"]}

    @staticmethod
    def _bearer(request: httpx.Request) -> str:
        return request.headers.get("Authorization", "").removeprefix("Bearer ")

    # -- Tables ---------------------------------------------------------------

    @staticmethod
    def _id_filter(request: httpx.Request) -> str | None:
        value = request.url.params.get("id")
        return value.removeprefix("eq.") if value else None

    def _single(self, request: httpx.Request, table: dict[str, dict[str, Any]]) -> httpx.Response:
        row_id = self._id_filter(request)
        row = table.get(row_id or "")
        if row is None:
            return httpx.Response(406, json=_NO_ROWS)
        if request.method == "PATCH":
            row.update(json.loads(request.content))
        return httpx.Response(200, json=row)

    def _tenants(self, request: httpx.Request) -> httpx.Response:
        row_id = self._id_filter(request)
        if request.method == "GET" and row_id is None:
            rows = sorted(self.tenants.values(), key=lambda r: r["created_at"], reverse=True)
            return httpx.Response(200, json=rows)
        if request.method == "POST":
            n = next(self._counter)
            row = {**_tenant_row(f"t-new-{n}", "", "2024-03-01T00:00:00Z"), **json.loads(request.content)}
            self.tenants[row["id"]] = row
            return httpx.Response(201, json=row)
        if request.method == "DELETE":
            self.tenants.pop(row_id or "", None)
            return httpx.Response(204)
        return self._single(request, self.tenants)


@pytest.fixture(autouse=True)
def _restore_logging():
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


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def http_client(backend: FakeBackend) -> httpx.AsyncClient:
    # MockTransport holds no connections, so the client needs no closing.
    return httpx.AsyncClient(transport=httpx.MockTransport(backend))


@pytest.fixture()
def make_app(http_client: httpx.AsyncClient, tmp_path: Path) -> Callable[[], AppStore]:
    """Build AppStores sharing one HTTP client and one file storage directory."""

    def build() -> AppStore:
        return create_app_store(
            AppSettings(storage_backend="file", storage_dir=tmp_path / "state", _env_file=None),  # type: ignore[call-arg]
            backend=BackendSettings(url=BASE_URL, anon_key=ANON_KEY, _env_file=None),  # type: ignore[call-arg]
            auth=AuthSettings(_env_file=None),  # type: ignore[call-arg]
            logging_settings=LoggingSettings(log_level="WARNING"),
            http_client=http_client,
            clock=lambda: NOW,
        )

    return build
