"""Notification dispatch feature settings."""

from pydantic import Field, field_validator

from infrastructure.configuration.base import FeatureSettings


class NotificationSettings(FeatureSettings):
    """Notification dispatch and meeting reminder configuration.

    Environment Variables:
        NOTIFICATIONS_DEFAULT_REGION: ISO region used to parse local phone
            numbers (default: AU)
        NOTIFICATIONS_MAX_WORKERS: Upper bound on concurrent sends per dispatch
        NOTIFICATIONS_DISPLAY_TIMEZONE: Timezone used to render dates and times
        MEETING_REMINDER_LEAD_MINUTES: How long before a meeting the reminder
            goes out (default: 60)
        MEETING_REMINDER_WINDOW_MINUTES: Half-width of the search window around
            the lead time (default: 5, i.e. 55-65 minutes ahead)
        MEETING_REMINDER_INTERVAL_MINUTES: How often the reminder job runs

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        region = settings.notifications.default_region
        ```
    """

    default_region: str = Field(
        default="AU",
        alias="NOTIFICATIONS_DEFAULT_REGION",
        description="ISO 3166 region used when a phone number has no country code",
    )
    max_workers: int = Field(
        default=8,
        alias="NOTIFICATIONS_MAX_WORKERS",
        description="Maximum concurrent channel sends in one dispatch",
    )
    display_timezone: str = Field(
        default="Australia/Adelaide",
        alias="NOTIFICATIONS_DISPLAY_TIMEZONE",
        description="Timezone for dates and times shown in messages",
    )
    reminder_lead_minutes: int = Field(
        default=60,
        alias="MEETING_REMINDER_LEAD_MINUTES",
        description="Minutes before a meeting that its reminder is sent",
    )
    reminder_window_minutes: int = Field(
        default=5,
        alias="MEETING_REMINDER_WINDOW_MINUTES",
        description="Tolerance either side of the lead time",
    )
    reminder_interval_minutes: int = Field(
        default=5,
        alias="MEETING_REMINDER_INTERVAL_MINUTES",
        description="Minutes between reminder job runs",
    )

    @field_validator("default_region")
    @classmethod
    def validate_region(cls, v: str) -> str:
        """Region codes are two upper-case letters."""
        v = v.strip().upper()
        if len(v) != 2 or not v.isalpha():
            raise ValueError(f"Region must be an ISO 3166 alpha-2 code: {v}")
        return v

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        """At least one worker is needed to send anything."""
        if v < 1:
            raise ValueError("NOTIFICATIONS_MAX_WORKERS must be >= 1")
        return v
