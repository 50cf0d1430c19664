"""
Dependency injection services.

Provides type aliases and provider functions for FastAPI dependency injection.
"""

from infrastructure.services.dependencies import (
    SettingsDep,
    PreferenceStoreDep,
    NotificationServiceDep,
)
from infrastructure.services.providers import (
    configure_preference_store,
    get_settings,
    get_preference_store,
    get_notification_service,
)

__all__ = [
    "SettingsDep",
    "PreferenceStoreDep",
    "NotificationServiceDep",
    "configure_preference_store",
    "get_settings",
    "get_preference_store",
    "get_notification_service",
]
