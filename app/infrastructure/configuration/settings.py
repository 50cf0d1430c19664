"""Application configuration settings - main aggregator."""

from pydantic_settings import BaseSettings, SettingsConfigDict

# Integration settings
from infrastructure.configuration.integrations import WhatsAppSettings

# Feature settings
from infrastructure.configuration.features import NotificationSettings


class Settings(BaseSettings):
    """Back-office notification settings - main aggregator.

    Aggregates all domain-specific settings into a single configuration object:

    - **Integrations**: the outbound messaging channel (WhatsApp Cloud API)
    - **Features**: notification dispatch and meeting reminders

    Environment Variables:
        PREFIX: Environment prefix, empty in production
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        GIT_SHA: Git commit SHA for deployment tracking

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        token = settings.whatsapp.WHATSAPP_ACCESS_TOKEN
        region = settings.notifications.default_region

        if settings.is_production:
            # Production-specific logic...
        ```
    """

    # Application-level settings
    PREFIX: str = ""
    LOG_LEVEL: str = "INFO"
    GIT_SHA: str = "Unknown"

    # Integration settings
    whatsapp: WhatsAppSettings

    # Feature settings
    notifications: NotificationSettings

    @property
    def is_production(self) -> bool:
        """Check if the application is running in production.

        Returns:
            True if PREFIX is empty (production), False otherwise.
        """
        return not bool(self.PREFIX)

    def __init__(self, **kwargs):
        """Initialize Settings with automatic subsettings instantiation.

        Args:
            **kwargs: Optional overrides for specific settings sections.
        """
        settings_map = {
            "whatsapp": WhatsAppSettings,
            "notifications": NotificationSettings,
        }

        for setting_name, setting_class in settings_map.items():
            if setting_name not in kwargs:
                kwargs[setting_name] = setting_class()

        super().__init__(**kwargs)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )
