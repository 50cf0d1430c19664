"""Notification service for dependency injection.

Provides a class-based interface to the notification system for easier DI and testing.
"""

from typing import Any, Dict, Optional, TYPE_CHECKING

import structlog
from infrastructure.notifications.dispatcher import NotificationDispatcher
from infrastructure.notifications.exceptions import NotificationError
from infrastructure.notifications.models import DispatchResult

if TYPE_CHECKING:
    from infrastructure.configuration import Settings
    from infrastructure.notifications.channels.base import NotificationChannel
    from infrastructure.notifications.recipients import PreferenceStore

logger = structlog.get_logger()


class NotificationService:
    """Class-based notification service.

    Wraps the NotificationDispatcher with a service interface to support
    dependency injection and easier testing with mocks.

    Request handlers that must never fail because of a notification use
    ``send_quietly``; callers that want to surface input or configuration
    errors use ``send``.

    Usage:
        # Via dependency injection
        from infrastructure.services import NotificationServiceDep

        @router.post("/stages/{stage_id}/complete")
        def complete_stage(stage_id: str, notifications: NotificationServiceDep):
            stage = stages.complete(stage_id)
            notifications.send_quietly(
                {"type": "stage_update", "fields": stage.model_dump()}
            )
            return stage

        # Direct instantiation
        from infrastructure.services import get_settings
        from infrastructure.notifications import NotificationService

        service = NotificationService(get_settings(), preference_store=store)
        result = service.send(event)
    """

    def __init__(
        self,
        settings: "Settings",
        preference_store: Optional["PreferenceStore"] = None,
        channel: Optional["NotificationChannel"] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
    ):
        """Initialize notification service.

        Args:
            settings: Settings instance (required, passed from provider).
            preference_store: Store queried for subscribed users. Required
                unless a dispatcher is provided.
            channel: Optional channel. Defaults to a WhatsAppChannel built
                from settings.
            dispatcher: Optional pre-configured NotificationDispatcher instance.
        """
        if dispatcher is None:
            if channel is None:
                # Import here to avoid circular dependency at module level
                from infrastructure.notifications.channels.whatsapp import (
                    WhatsAppChannel,
                )

                channel = WhatsAppChannel(settings)

            dispatcher = NotificationDispatcher(
                channel=channel,
                preference_store=preference_store,
                max_workers=settings.notifications.max_workers,
                default_region=settings.notifications.default_region,
            )

        self._dispatcher = dispatcher
        self._settings = settings

    def send(self, event: Any, template: Optional[Any] = None) -> DispatchResult:
        """Dispatch notifications for a domain event.

        Args:
            event: DomainEvent or event record mapping
            template: Optional explicit template override

        Returns:
            DispatchResult with per-recipient outcomes

        Raises:
            InvalidEventError: event is malformed or names an unknown template
            ChannelConfigurationError: channel credentials are missing
        """
        return self._dispatcher.dispatch(event, template)

    def send_quietly(
        self, event: Any, template: Optional[Any] = None
    ) -> Optional[DispatchResult]:
        """Dispatch notifications, logging instead of raising on failure.

        Intended for request handlers where the primary write has already
        succeeded.

        Returns:
            DispatchResult, or None when the dispatch raised
        """
        try:
            return self._dispatcher.dispatch(event, template)
        except NotificationError as e:
            logger.error(
                "notification_dispatch_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    def health_check(self) -> Dict[str, bool]:
        """Check health of the configured channel.

        Returns:
            Dict mapping channel name to health status (True=healthy)
        """
        return self._dispatcher.health_check()

    @property
    def dispatcher(self) -> NotificationDispatcher:
        """Access underlying NotificationDispatcher instance.

        Returns:
            The underlying NotificationDispatcher instance
        """
        return self._dispatcher
