"""Meeting reminder job.

Sends the ``meeting_confirmation`` template roughly one hour before each
meeting. Every run looks for meetings starting between
``lead - window`` and ``lead + window`` minutes from now that have not had
their reminder yet, dispatches one notification per meeting and marks it
as reminded. A failure on one meeting is logged and the run moves on.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, TYPE_CHECKING

import pytz
import structlog
from pydantic import BaseModel, Field, field_validator

from infrastructure.logging import get_module_logger
from infrastructure.notifications.models import EventKind, TemplateKind
from infrastructure.notifications.parameters import format_time

if TYPE_CHECKING:
    from infrastructure.configuration import Settings
    from infrastructure.notifications import NotificationService

logger = get_module_logger()

NO_PROJECTS = "No projects"
NO_LOTS = "No lots"
UNKNOWN_CLIENT = "Unknown Client"
NO_PARTICIPANTS = "No participants"
NO_NOTES = "No notes provided"


class MeetingParticipant(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class MeetingLot(BaseModel):
    lot_id: str
    project_name: Optional[str] = None
    client_name: Optional[str] = None

    @field_validator("lot_id", mode="before")
    @classmethod
    def coerce_lot_id(cls, v: Any) -> str:
        return str(v)


class Meeting(BaseModel):
    """A scheduled meeting with its lots and participants.

    Attributes:
        id: Meeting identifier
        title: Meeting title
        starts_at: Start time; naive values are taken as UTC
        notes: Free-form notes
        lots: Lots the meeting is about
        participants: Employees invited to the meeting
        reminder_sent: Whether the one-hour reminder already went out
    """

    id: str
    title: str = ""
    starts_at: datetime
    notes: Optional[str] = None
    lots: List[MeetingLot] = Field(default_factory=list)
    participants: List[MeetingParticipant] = Field(default_factory=list)
    reminder_sent: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("starts_at")
    @classmethod
    def ensure_aware(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class MeetingStore(ABC):
    """Source of meetings that are due a reminder."""

    @abstractmethod
    def find_due_meetings(self, window_start: datetime, window_end: datetime) -> List[Meeting]:
        """Return meetings starting within [window_start, window_end] that
        have not had their reminder sent."""

    @abstractmethod
    def mark_reminder_sent(self, meeting_id: str) -> None:
        """Record that the reminder for ``meeting_id`` went out."""


class InMemoryMeetingStore(MeetingStore):
    """Thread-safe in-process meeting store."""

    def __init__(self):
        self._meetings: Dict[str, Meeting] = {}
        self._lock = threading.Lock()

    def add_meeting(self, meeting: Meeting) -> None:
        with self._lock:
            self._meetings[meeting.id] = meeting

    def get_meeting(self, meeting_id: str) -> Optional[Meeting]:
        with self._lock:
            return self._meetings.get(meeting_id)

    def find_due_meetings(self, window_start: datetime, window_end: datetime) -> List[Meeting]:
        with self._lock:
            due = [
                m
                for m in self._meetings.values()
                if not m.reminder_sent and window_start <= m.starts_at <= window_end
            ]
        return sorted(due, key=lambda m: m.starts_at)

    def mark_reminder_sent(self, meeting_id: str) -> None:
        with self._lock:
            meeting = self._meetings.get(meeting_id)
            if meeting is None:
                raise KeyError(f"Unknown meeting: {meeting_id}")
            self._meetings[meeting_id] = meeting.model_copy(update={"reminder_sent": True})


def reminder_window(
    now: datetime, lead_minutes: int = 60, window_minutes: int = 5
) -> tuple[datetime, datetime]:
    """Return the (start, end) range of meeting start times due a reminder."""
    return (
        now + timedelta(minutes=lead_minutes - window_minutes),
        now + timedelta(minutes=lead_minutes + window_minutes),
    )


def build_meeting_event(meeting: Meeting, display_timezone: str = "Australia/Adelaide") -> Dict[str, Any]:
    """Build the meeting event record sent to the notification service.

    Args:
        meeting: Meeting to describe
        display_timezone: Timezone the date and time are shown in

    Returns:
        Event record with the eight meeting_confirmation fields
    """
    tz = pytz.timezone(display_timezone)
    local_start = meeting.starts_at.astimezone(tz)

    project_names: List[str] = []
    for lot in meeting.lots:
        if lot.project_name and lot.project_name not in project_names:
            project_names.append(lot.project_name)

    lots = [f"{lot.lot_id} ({lot.client_name or UNKNOWN_CLIENT})" for lot in meeting.lots]
    names = [p.full_name for p in meeting.participants if p.full_name]

    return {
        "type": EventKind.MEETING.value,
        "fields": {
            "meeting_id": meeting.id,
            "title": meeting.title,
            "project_names": ", ".join(project_names) or NO_PROJECTS,
            "lot_id_client": ", ".join(lots) or NO_LOTS,
            "date": local_start.strftime("%d/%m/%Y"),
            "time": format_time(local_start),
            "participant1": names[0] if names else NO_PARTICIPANTS,
            "participant2_plus": ", ".join(names[1:]),
            "notes": meeting.notes or NO_NOTES,
        },
    }


def send_meeting_reminders(
    service: "NotificationService",
    store: MeetingStore,
    settings: "Settings",
    now: Optional[datetime] = None,
) -> int:
    """Send reminders for meetings starting about one lead time from now.

    Args:
        service: Notification service used to dispatch each reminder
        store: Meeting store to query and update
        settings: Settings with the notifications reminder configuration
        now: Current time, defaults to the current UTC time

    Returns:
        Number of meetings marked as reminded
    """
    config = settings.notifications
    now = now or datetime.now(timezone.utc)
    window_start, window_end = reminder_window(
        now, config.reminder_lead_minutes, config.reminder_window_minutes
    )

    meetings = store.find_due_meetings(window_start, window_end)
    if not meetings:
        logger.info(
            "no_meetings_due_reminder",
            window_start=window_start.isoformat(),
            window_end=window_end.isoformat(),
        )
        return 0

    logger.info("meetings_due_reminder", count=len(meetings))

    reminded = 0
    for meeting in meetings:
        with structlog.contextvars.bound_contextvars(meeting_id=meeting.id):
            try:
                event = build_meeting_event(meeting, config.display_timezone)
                result = service.send(event, TemplateKind.MEETING_CONFIRMATION)
                store.mark_reminder_sent(meeting.id)
            except Exception as e:  # pylint: disable=broad-except
                logger.error(
                    "meeting_reminder_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )
                continue

            reminded += 1
            logger.info(
                "meeting_reminder_sent",
                title=meeting.title,
                sent=result.sent,
                failed=result.failed,
            )

    return reminded
