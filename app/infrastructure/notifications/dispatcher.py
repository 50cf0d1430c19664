"""Notification dispatcher.

Turns a domain event into zero or more template messages:

1. Validate the event (the only step that raises on bad input)
2. Resolve the template and its gating preference flag
3. Build the template parameters
4. Resolve recipients subscribed to the gating flag
5. Send to every recipient concurrently; one failure never affects another
6. Aggregate the outcomes into a DispatchResult

Usage Example:
    from infrastructure.notifications import NotificationDispatcher

    dispatcher = NotificationDispatcher(
        channel=whatsapp_channel,
        preference_store=store,
    )

    result = dispatcher.dispatch(
        {"type": "stage_update", "stage_name": "Drafting", "status": "DONE"}
    )
    logger.info("stage_notified", sent=result.sent, failed=result.failed)
"""

import contextvars
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional, Sequence

import structlog
from infrastructure.logging import bind_dispatch_context
from infrastructure.notifications import parameters as parameter_builders
from infrastructure.notifications.channels.base import NotificationChannel
from infrastructure.notifications.exceptions import PreferenceLookupError
from infrastructure.notifications.models import (
    DispatchResult,
    DomainEvent,
    Recipient,
    RecipientError,
    TemplateKind,
)
from infrastructure.notifications.phone import DEFAULT_REGION
from infrastructure.notifications.recipients import PreferenceStore, RecipientResolver
from infrastructure.notifications.templates import TemplateResolver
from infrastructure.operations import OperationResult

logger = structlog.get_logger()

DEFAULT_MAX_WORKERS = 8


class NotificationDispatcher:
    """Template notification dispatch engine.

    Holds no mutable state between calls; ``dispatch`` is safe to call
    concurrently from several request handlers.

    Attributes:
        channel: NotificationChannel used for every send
        recipient_resolver: Expands a gating flag into recipients
        template_resolver: Maps an event to (template, gating flag)
        max_workers: Upper bound on concurrent sends in one dispatch

    Example:
        dispatcher = NotificationDispatcher(
            channel=WhatsAppChannel(settings),
            preference_store=store,
            max_workers=4,
        )

        result = dispatcher.dispatch(event)
    """

    def __init__(
        self,
        channel: NotificationChannel,
        preference_store: Optional[PreferenceStore] = None,
        recipient_resolver: Optional[RecipientResolver] = None,
        template_resolver: Optional[TemplateResolver] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        default_region: str = DEFAULT_REGION,
    ):
        """Initialize notification dispatcher.

        Args:
            channel: Channel that sends template messages
            preference_store: Store used to build a RecipientResolver when
                ``recipient_resolver`` is not given
            recipient_resolver: Pre-built recipient resolver
            template_resolver: Pre-built template resolver
            max_workers: Maximum concurrent sends per dispatch
            default_region: Region for normalizing local phone numbers
        """
        if recipient_resolver is None:
            if preference_store is None:
                raise ValueError("preference_store or recipient_resolver is required")
            recipient_resolver = RecipientResolver(
                preference_store, default_region=default_region
            )
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")

        self.channel = channel
        self.recipient_resolver = recipient_resolver
        self.template_resolver = template_resolver or TemplateResolver()
        self.max_workers = max_workers

        logger.info(
            "initialized_notification_dispatcher",
            channel=channel.channel_name,
            max_workers=max_workers,
        )

    def dispatch(self, event: Any, template: Optional[Any] = None) -> DispatchResult:
        """Dispatch notifications for one domain event.

        Args:
            event: DomainEvent, or a mapping accepted by DomainEvent.from_record
            template: Optional explicit template override

        Returns:
            DispatchResult; zero attempts when no template or no recipient applies

        Raises:
            InvalidEventError: event is not a well-formed record
            ChannelConfigurationError: the channel has no usable credential
        """
        domain_event = DomainEvent.from_record(event, template)
        resolution = self.template_resolver.resolve(domain_event)

        if not resolution.has_template:
            logger.info("notification_skipped_no_template", event_kind=domain_event.kind.value)
            return DispatchResult.nothing_to_do("No template resolved for event")

        template_kind = resolution.template_kind
        gating_field = resolution.gating_field

        with bind_dispatch_context(
            event_kind=domain_event.kind.value, template=template_kind.value
        ):
            if gating_field is None:
                logger.warning(
                    "notification_skipped_no_gating_field",
                    stage_name=domain_event.get("stage_name", "name", "stage"),
                )
                return DispatchResult.nothing_to_do(
                    "No preference flag gates this event",
                    template_kind=template_kind,
                )

            parameters = parameter_builders.build_parameters(
                template_kind, domain_event.fields
            )

            try:
                recipients = self.recipient_resolver.resolve(gating_field)
            except PreferenceLookupError as e:
                return DispatchResult.nothing_to_do(
                    str(e), template_kind=template_kind, gating_field=gating_field
                )

            if not recipients:
                logger.info("notification_skipped_no_recipients", gating_field=gating_field)
                return DispatchResult.nothing_to_do(
                    "No subscribed recipients",
                    template_kind=template_kind,
                    gating_field=gating_field,
                )

            # Affects every recipient identically; raised once for the batch
            self.channel.ensure_configured()

            errors = self._fan_out(recipients, template_kind, parameters)

            attempted = len(recipients)
            sent = attempted - len(errors)
            result = DispatchResult(
                template_kind=template_kind,
                gating_field=gating_field,
                attempted=attempted,
                sent=sent,
                failed=len(errors),
                per_recipient_errors=errors,
                message=f"Sent {sent} notification(s), {len(errors)} failed",
            )

            logger.info(
                "notification_dispatched",
                gating_field=gating_field,
                attempted=attempted,
                sent=sent,
                failed=result.failed,
            )
            return result

    def _fan_out(
        self,
        recipients: List[Recipient],
        template_kind: TemplateKind,
        parameters: Sequence[str],
    ) -> List[RecipientError]:
        """Send to all recipients concurrently and collect the failures.

        Waits for every send to settle. Failures are returned in recipient
        order.
        """
        failures: Dict[int, RecipientError] = {}
        workers = min(self.max_workers, len(recipients))

        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="notification-send"
        ) as executor:
            future_to_index = {
                executor.submit(
                    contextvars.copy_context().run,
                    self._send_one,
                    recipient,
                    template_kind,
                    parameters,
                ): index
                for index, recipient in enumerate(recipients)
            }

            for future in as_completed(future_to_index):
                index = future_to_index[future]
                recipient = recipients[index]
                try:
                    result = future.result()
                except Exception as exc:  # pylint: disable=broad-except
                    logger.error(
                        "recipient_send_exception",
                        user_id=recipient.user_id,
                        address=recipient.address,
                        error=str(exc),
                        exc_info=True,
                    )
                    failures[index] = RecipientError(
                        user_id=recipient.user_id,
                        address=recipient.address,
                        reason=f"{type(exc).__name__}: {exc}",
                        error_code="CHANNEL_EXCEPTION",
                    )
                    continue

                if isinstance(result, OperationResult) and not result.is_success:
                    logger.warning(
                        "recipient_send_failed",
                        user_id=recipient.user_id,
                        address=recipient.address,
                        error_code=result.error_code,
                        error=result.message,
                    )
                    failures[index] = RecipientError(
                        user_id=recipient.user_id,
                        address=recipient.address,
                        reason=result.message,
                        error_code=result.error_code,
                    )

        return [failures[index] for index in sorted(failures)]

    def _send_one(
        self,
        recipient: Recipient,
        template_kind: TemplateKind,
        parameters: Sequence[str],
    ):
        logger.debug(
            "recipient_send_started",
            user_id=recipient.user_id,
            address=recipient.address,
            is_secondary=recipient.is_secondary,
        )
        return self.channel.send(recipient.address, template_kind, list(parameters))

    def health_check(self) -> Dict[str, bool]:
        """Check health of the channel.

        Returns:
            Dict mapping channel name to health status (True=healthy)
        """
        try:
            result = self.channel.health_check()
            healthy = result.is_success
        except Exception as e:  # pylint: disable=broad-except
            logger.error(
                "channel_health_check_failed",
                channel_name=self.channel.channel_name,
                error=str(e),
                exc_info=True,
            )
            healthy = False
        return {self.channel.channel_name: healthy}
