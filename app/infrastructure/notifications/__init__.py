"""Template notification dispatch.

Turns back-office domain events (stage completed, materials list updated,
supplier statement added, stock transaction created, installer assigned,
meeting confirmed) into WhatsApp template messages for every user who
enabled the matching preference flag.

Usage:
    from infrastructure.notifications import (
        InMemoryPreferenceStore,
        NotificationDispatcher,
        WhatsAppChannel,
    )

    store = InMemoryPreferenceStore()
    store.add_user("7", {"stage_drafting": True}, primary_phone="0400 000 000")

    dispatcher = NotificationDispatcher(
        channel=WhatsAppChannel(settings),
        preference_store=store,
    )

    result = dispatcher.dispatch(
        {
            "type": "stage_update",
            "stage_name": "Drafting",
            "status": "DONE",
            "project_name": "Smith Residence",
        }
    )
    logger.info("stage_notified", sent=result.sent, attempted=result.attempted)
"""

# Models
from infrastructure.notifications.models import (
    DispatchResult,
    DomainEvent,
    EventKind,
    PreferenceSubscriber,
    Recipient,
    RecipientError,
    TemplateKind,
)

# Errors
from infrastructure.notifications.exceptions import (
    ChannelConfigurationError,
    InvalidEventError,
    NotificationError,
    PreferenceLookupError,
    UnknownTemplateError,
)

# Resolution
from infrastructure.notifications.templates import (
    TemplateResolution,
    TemplateResolver,
)
from infrastructure.notifications.recipients import (
    InMemoryPreferenceStore,
    PreferenceStore,
    RecipientResolver,
)

# Dispatcher
from infrastructure.notifications.dispatcher import NotificationDispatcher

# Channel interface
from infrastructure.notifications.channels.base import NotificationChannel

# Channel implementations
from infrastructure.notifications.channels.whatsapp import WhatsAppChannel

# Service
from infrastructure.notifications.service import NotificationService

# Export all public interfaces
__all__ = [
    # Models
    "DispatchResult",
    "DomainEvent",
    "EventKind",
    "PreferenceSubscriber",
    "Recipient",
    "RecipientError",
    "TemplateKind",
    # Errors
    "ChannelConfigurationError",
    "InvalidEventError",
    "NotificationError",
    "PreferenceLookupError",
    "UnknownTemplateError",
    # Resolution
    "TemplateResolution",
    "TemplateResolver",
    "InMemoryPreferenceStore",
    "PreferenceStore",
    "RecipientResolver",
    # Dispatcher
    "NotificationDispatcher",
    # Channel interface
    "NotificationChannel",
    # Channel implementations
    "WhatsAppChannel",
    # Service
    "NotificationService",
]
