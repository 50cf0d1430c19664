"""Integration settings __init__ - exports all integration settings."""

from infrastructure.configuration.integrations.whatsapp import WhatsAppSettings

__all__ = [
    "WhatsAppSettings",
]
