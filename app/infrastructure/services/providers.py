"""
Factory functions for dependency injection.

Provides application-scoped singleton providers for core infrastructure services.
"""

from functools import lru_cache
from typing import Optional

from infrastructure.configuration import Settings
from infrastructure.notifications import (
    InMemoryPreferenceStore,
    NotificationService,
    PreferenceStore,
)


@lru_cache
def get_settings() -> Settings:
    """
    Get application-scoped settings singleton.

    This is the single source of truth for settings across the entire application.
    The @lru_cache decorator ensures only ONE instance is created per process,
    even if called from multiple packages.

    Infrastructure packages should use this directly to ensure singleton consistency:
        from infrastructure.services.providers import get_settings
        settings = get_settings()

    Application code should use the DI type alias for testability:
        from infrastructure.services import SettingsDep
        @router.get("/config")
        def get_config(settings: SettingsDep):
            return {"region": settings.notifications.default_region}

    Returns:
        Settings: Cached settings instance loaded from environment.
    """
    return Settings()


_preference_store: Optional[PreferenceStore] = None


def configure_preference_store(store: Optional[PreferenceStore]) -> None:
    """
    Set the preference store used by the application providers.

    Deployments backed by the back-office database call this once at
    startup (the lifespan does so from ``app.state.preference_store``).
    The cached store and notification service are dropped so the next
    lookup is wired to the new store. Passing None restores the default.

    Args:
        store: PreferenceStore to use, or None for the in-process default.
    """
    global _preference_store
    _preference_store = store
    get_preference_store.cache_clear()
    get_notification_service.cache_clear()


@lru_cache
def get_preference_store() -> PreferenceStore:
    """
    Get application-scoped preference store singleton.

    Returns the store set with configure_preference_store(), otherwise an
    in-process store. The notification service and the scheduled reminder
    job read recipients from this store.

    Returns:
        PreferenceStore: Cached preference store instance.
    """
    if _preference_store is not None:
        return _preference_store
    return InMemoryPreferenceStore()


@lru_cache
def get_notification_service() -> NotificationService:
    """
    Get application-scoped notification service singleton.

    Returns:
        NotificationService: Cached service wired with the WhatsApp channel
        and the application preference store.

    Usage:
        @router.post("/meetings")
        def create_meeting(notifications: NotificationServiceDep):
            notifications.send_quietly(event)
    """
    return NotificationService(
        settings=get_settings(),
        preference_store=get_preference_store(),
    )
