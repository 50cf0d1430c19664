"""WhatsApp Cloud API integration settings."""

from pydantic import Field

from infrastructure.configuration.base import IntegrationSettings


class WhatsAppSettings(IntegrationSettings):
    """WhatsApp Cloud API configuration.

    Environment Variables:
        WHATSAPP_API_URL: Graph API messages endpoint for the sending phone
            number (e.g. https://graph.facebook.com/v24.0/<phone-id>/messages)
        WHATSAPP_ACCESS_TOKEN: Bearer token for the Graph API
        WHATSAPP_TEMPLATE_LANGUAGE: Language code of the approved templates
        WHATSAPP_TIMEOUT_SECONDS: Per-request timeout for a single send

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        api_url = settings.whatsapp.WHATSAPP_API_URL
        token = settings.whatsapp.WHATSAPP_ACCESS_TOKEN
        ```
    """

    WHATSAPP_API_URL: str = Field(default="", alias="WHATSAPP_API_URL")
    WHATSAPP_ACCESS_TOKEN: str | None = Field(
        default=None, alias="WHATSAPP_ACCESS_TOKEN"
    )
    WHATSAPP_TEMPLATE_LANGUAGE: str = Field(
        default="en", alias="WHATSAPP_TEMPLATE_LANGUAGE"
    )
    WHATSAPP_TIMEOUT_SECONDS: int = Field(default=30, alias="WHATSAPP_TIMEOUT_SECONDS")

    @property
    def is_configured(self) -> bool:
        """True when both the endpoint and the access token are set."""
        return bool(self.WHATSAPP_API_URL) and bool(self.WHATSAPP_ACCESS_TOKEN)
