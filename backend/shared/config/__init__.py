"""
Unified Configuration Access Point

    from shared.config import get_settings

    settings = get_settings()
    interval = settings.sync.sync_interval_minutes
"""

from .settings import (
    ApplicationSettings,
    ClassifierSettings,
    GoogleSheetsSettings,
    ServiceSettings,
    SyncSettings,
    get_settings,
    reload_settings,
)

__all__ = [
    "ApplicationSettings",
    "ClassifierSettings",
    "GoogleSheetsSettings",
    "ServiceSettings",
    "SyncSettings",
    "get_settings",
    "reload_settings",
]
