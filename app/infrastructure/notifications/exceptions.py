"""Exceptions raised by the notification dispatch engine.

Only input and configuration problems are raised. Resolution misses,
empty recipient sets and per-recipient send failures are reported in
the DispatchResult instead.
"""


class NotificationError(Exception):
    """Base exception for notification dispatch errors.

    Example:
        try:
            dispatcher.dispatch(record)
        except NotificationError as e:
            logger.error("notification_error", error=str(e))
    """

    pass


class InvalidEventError(NotificationError):
    """Raised when the triggering event is not a well-formed record.

    Example:
        >>> dispatcher.dispatch("stage done")
        Traceback (most recent call last):
        ...
        InvalidEventError: Event must be a mapping or DomainEvent, got str
    """

    pass


class UnknownTemplateError(InvalidEventError):
    """Raised when an explicit template override names no known template."""

    def __init__(self, template_name):
        self.template_name = template_name
        super().__init__(f"Unknown template: {template_name!r}")


class ChannelConfigurationError(NotificationError):
    """Raised when the messaging channel cannot authenticate at all.

    A missing endpoint or credential affects every recipient the same
    way, so it is surfaced once for the whole dispatch.
    """

    pass


class PreferenceLookupError(NotificationError):
    """Raised when the preference store cannot be queried.

    The dispatcher reports this as a zero-recipient result rather than
    failing the caller.
    """

    pass
