"""Fixtures for job tests."""

from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import MagicMock

from infrastructure.notifications.models import DispatchResult, TemplateKind
from jobs.meeting_reminders import (
    InMemoryMeetingStore,
    Meeting,
    MeetingLot,
    MeetingParticipant,
)

NOW = datetime(2025, 3, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def job_settings():
    settings = MagicMock()
    settings.PREFIX = ""
    settings.notifications.reminder_lead_minutes = 60
    settings.notifications.reminder_window_minutes = 5
    settings.notifications.reminder_interval_minutes = 5
    settings.notifications.display_timezone = "Australia/Adelaide"
    return settings


@pytest.fixture
def meeting_factory():
    """Factory for creating Meeting instances.

    Example:
        meeting = meeting_factory(meeting_id="m-1", minutes_from_now=60)
    """

    def _factory(
        meeting_id="m-1",
        minutes_from_now=60,
        title="Site walk",
        notes="Bring samples",
        lots=None,
        participants=None,
        reminder_sent=False,
    ) -> Meeting:
        return Meeting(
            id=meeting_id,
            title=title,
            starts_at=NOW + timedelta(minutes=minutes_from_now),
            notes=notes,
            lots=lots
            if lots is not None
            else [
                MeetingLot(lot_id="LOT-12", project_name="Smith Residence", client_name="Jane Smith"),
            ],
            participants=participants
            if participants is not None
            else [
                MeetingParticipant(first_name="Alex", last_name="Doe"),
                MeetingParticipant(first_name="Sam", last_name="Lee"),
            ],
            reminder_sent=reminder_sent,
        )

    return _factory


@pytest.fixture
def meeting_store():
    return InMemoryMeetingStore()


@pytest.fixture
def mock_service():
    service = MagicMock()
    service.send.return_value = DispatchResult(
        template_kind=TemplateKind.MEETING_CONFIRMATION,
        gating_field="meeting",
        attempted=2,
        sent=2,
        failed=0,
    )
    return service
