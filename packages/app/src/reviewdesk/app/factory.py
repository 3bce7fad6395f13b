"""Composition root: builds the stores and their remote collaborators.

:func:`create_app_store` is the only place that reads settings classes and
chooses concrete implementations. Everything below it receives plain
collaborators through its constructor.
"""

from __future__ import annotations

import logging
import time
from contextlib import AsyncExitStack
from typing import TYPE_CHECKING

import httpx

from reviewdesk.app.app_store import AppStore
from reviewdesk.app.settings import AppSettings, TenantCacheSettings
from reviewdesk.domain.identity import SessionStore, SessionStoreSettings
from reviewdesk.domain.tenancy import TenantStore, TenantStoreSettings
from reviewdesk.infra.auth import (
    AuthSettings,
    BackendSettings,
    IdentityServiceClient,
    get_auth_settings,
    get_backend_settings,
)
from reviewdesk.infra.observability import LoggingSettings, configure_logging
from reviewdesk.infra.persistence import (
    FileStateStorage,
    InMemoryStateStorage,
    RedisSettings,
    RedisStateStorage,
)
from reviewdesk.infra.rest import ProfileServiceClient, RestClient, TenantServiceClient

if TYPE_CHECKING:
    from collections.abc import Callable

    from reviewdesk.foundation.domain.ports import StateStoragePort

logger = logging.getLogger(__name__)


def build_state_storage(
    settings: AppSettings,
    redis_settings: RedisSettings | None = None,
    resources: AsyncExitStack | None = None,
) -> StateStoragePort:
    """Create the storage backend named by ``settings.storage_backend``.

    Args:
        settings: Application settings.
        redis_settings: Connection settings for the redis backend; loaded
            from the environment when omitted.
        resources: Exit stack that takes ownership of the redis client.
    """
    match settings.storage_backend:
        case "memory":
            return InMemoryStateStorage()
        case "file":
            return FileStateStorage(settings.storage_dir)
        case "redis":
            storage = RedisStateStorage.from_settings(
                redis_settings or RedisSettings(),
                namespace=settings.storage_namespace,
            )
            if resources is not None:
                resources.callback(storage.close)
            return storage
    msg = f"Unknown storage backend: {settings.storage_backend!r}"
    raise ValueError(msg)


def create_app_store(
    settings: AppSettings | None = None,
    *,
    backend: BackendSettings | None = None,
    auth: AuthSettings | None = None,
    tenant_cache: TenantCacheSettings | None = None,
    redis: RedisSettings | None = None,
    logging_settings: LoggingSettings | None = None,
    storage: StateStoragePort | None = None,
    http_client: httpx.AsyncClient | None = None,
    clock: Callable[[], float] = time.time,
) -> AppStore:
    """Wire the session store, the tenant store and their remote clients.

    The identity, profile and tenant clients share one identity session and
    one ``httpx.AsyncClient``. A client passed in stays owned by the caller;
    otherwise one is created here and closed by :meth:`AppStore.aclose`.

    Args:
        settings: Application settings. If ``None``, loaded from environment.
        backend: Backend URL and key. If ``None``, loaded from environment.
        auth: Session timing. If ``None``, loaded from environment.
        tenant_cache: Tenant cache window. If ``None``, loaded from environment.
        redis: Redis connection for the redis storage backend.
        logging_settings: Passed to :func:`configure_logging`.
        storage: Storage backend overriding ``settings.storage_backend``.
        http_client: Shared HTTP client overriding the owned one.
        clock: Epoch-seconds clock for both stores.

    Returns:
        An uninitialized :class:`AppStore`; call ``initialize()`` next.
    """
    configure_logging(logging_settings)

    settings = settings or AppSettings()
    backend = backend or get_backend_settings()
    auth = auth or get_auth_settings()
    tenant_cache = tenant_cache or TenantCacheSettings()

    resources = AsyncExitStack()
    if http_client is None:
        http_client = httpx.AsyncClient(timeout=backend.timeout)
        resources.push_async_callback(http_client.aclose)
    if storage is None:
        storage = build_state_storage(settings, redis, resources)

    if not backend.is_configured():
        logger.warning("backend_not_configured", extra={"url": backend.url})

    identity = IdentityServiceClient(
        backend.url,
        backend.anon_key,
        timeout=backend.timeout,
        client=http_client,
        clock=clock,
    )
    profiles = ProfileServiceClient(
        RestClient(identity, backend.url, "profiles", timeout=backend.timeout, client=http_client)
    )
    tenants = TenantServiceClient(
        RestClient(identity, backend.url, "tenants", timeout=backend.timeout, client=http_client),
        profiles,
    )

    session_store = SessionStore(
        identity,
        profiles,
        tenants,
        storage=storage,
        settings=SessionStoreSettings(
            session_timeout_seconds=auth.session_timeout_seconds,
            expiry_warning_seconds=auth.expiry_warning_seconds,
        ),
        clock=clock,
    )
    tenant_store = TenantStore(
        tenants,
        identity,
        profiles,
        storage=storage,
        settings=TenantStoreSettings(cache_expiry_seconds=tenant_cache.cache_expiry_seconds),
        backend_configured=backend.is_configured(),
        clock=clock,
    )
    logger.info(
        "app_store_created",
        extra={"storage_backend": type(storage).__name__, "backend_configured": backend.is_configured()},
    )
    return AppStore(session_store, tenant_store, resources)
