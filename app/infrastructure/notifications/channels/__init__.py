"""Notification channel implementations."""

from infrastructure.notifications.channels.base import NotificationChannel
from infrastructure.notifications.channels.whatsapp import WhatsAppChannel

__all__ = [
    "NotificationChannel",
    "WhatsAppChannel",
]
