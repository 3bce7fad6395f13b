"""Reviewdesk App -- composition of the session and tenant stores."""

from reviewdesk.app.app_store import AppStore, AppView
from reviewdesk.app.factory import build_state_storage, create_app_store
from reviewdesk.app.settings import AppSettings, TenantCacheSettings

__all__ = [
    "AppSettings",
    "AppStore",
    "AppView",
    "TenantCacheSettings",
    "build_state_storage",
    "create_app_store",
]
