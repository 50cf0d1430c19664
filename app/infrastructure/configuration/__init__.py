"""Infrastructure configuration module - public API.

Centralized configuration management using Pydantic BaseSettings with
domain-based organization.

Exports:
    Settings: Main settings class
    WhatsAppSettings: Messaging channel settings (for testing/overrides)
    NotificationSettings: Dispatch feature settings (for testing/overrides)

Example:
    ```python
    from infrastructure.services import get_settings

    settings = get_settings()

    api_url = settings.whatsapp.WHATSAPP_API_URL
    max_workers = settings.notifications.max_workers
    ```
"""

from infrastructure.configuration.settings import Settings
from infrastructure.configuration.integrations import WhatsAppSettings
from infrastructure.configuration.features import NotificationSettings

__all__ = ["Settings", "WhatsAppSettings", "NotificationSettings"]
