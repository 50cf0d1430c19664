"""
Type aliases for FastAPI dependency injection.

Provides annotated type hints for common infrastructure dependencies.
"""

from typing import Annotated
from fastapi import Depends
from infrastructure.configuration import Settings
from infrastructure.notifications import NotificationService, PreferenceStore
from infrastructure.services.providers import (
    get_settings,
    get_preference_store,
    get_notification_service,
)

# Settings dependency
SettingsDep = Annotated[Settings, Depends(get_settings)]

# Preference store dependency
PreferenceStoreDep = Annotated[PreferenceStore, Depends(get_preference_store)]

# Notification service dependency
# Usage: notifications.send_quietly({"type": "stage_update", ...})
NotificationServiceDep = Annotated[
    NotificationService, Depends(get_notification_service)
]

__all__ = [
    "SettingsDep",
    "PreferenceStoreDep",
    "NotificationServiceDep",
]
