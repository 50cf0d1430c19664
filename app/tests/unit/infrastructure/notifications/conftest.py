"""Test fixtures for notification infrastructure tests."""

import pytest
from typing import Any, Dict, Iterable, Optional
from unittest.mock import MagicMock

from infrastructure.notifications.channels.base import NotificationChannel
from infrastructure.notifications.models import DomainEvent
from infrastructure.notifications.recipients import InMemoryPreferenceStore
from infrastructure.operations import OperationResult


@pytest.fixture
def mock_settings():
    """Mock Settings instance for testing channels.

    Returns:
        Mock settings with whatsapp and notifications configurations
    """
    mock = MagicMock()
    mock.whatsapp.WHATSAPP_API_URL = "https://graph.facebook.com/v21.0/123456/messages"
    mock.whatsapp.WHATSAPP_ACCESS_TOKEN = "test-access-token"
    mock.whatsapp.WHATSAPP_TEMPLATE_LANGUAGE = "en"
    mock.whatsapp.WHATSAPP_TIMEOUT_SECONDS = 30
    mock.notifications.default_region = "AU"
    mock.notifications.max_workers = 4
    return mock


@pytest.fixture
def event_factory():
    """Factory for creating DomainEvent instances.

    Example:
        event = event_factory("stage_update", stage_name="Drafting")
        override = event_factory("unknown", template="stage_completed")
    """

    def _factory(kind: Any = "stage_update", template: Any = None, **fields) -> DomainEvent:
        return DomainEvent(kind=kind, explicit_template=template, fields=fields)

    return _factory


@pytest.fixture
def stage_event(event_factory):
    """A completed Drafting stage event."""
    return event_factory(
        "stage_update",
        project_name="Smith Residence",
        client_name="Jane Smith",
        lot_id="LOT-12",
        stage_name="Drafting",
        status="DONE",
    )


@pytest.fixture
def preference_store_factory():
    """Factory for an InMemoryPreferenceStore pre-loaded with users.

    Example:
        store = preference_store_factory(
            {"user_id": "1", "flags": ["meeting"], "primary_phone": "0412345678"},
        )
    """

    def _factory(*users: Dict[str, Any]) -> InMemoryPreferenceStore:
        store = InMemoryPreferenceStore()
        for user in users:
            store.add_user(**user)
        return store

    return _factory


@pytest.fixture
def subscriber_factory():
    """Factory for preference store user entries."""

    def _factory(
        user_id: str = "1",
        flags: Iterable[str] = ("stage_drafting",),
        primary_phone: Optional[str] = "0412345678",
        secondary_phone: Optional[str] = None,
        active: bool = True,
    ) -> Dict[str, Any]:
        return {
            "user_id": user_id,
            "flags": flags,
            "primary_phone": primary_phone,
            "secondary_phone": secondary_phone,
            "active": active,
        }

    return _factory


@pytest.fixture
def mock_channel():
    """Mock NotificationChannel that reports success for every send."""
    channel = MagicMock(spec=NotificationChannel)
    channel.channel_name = "whatsapp"
    channel.send.return_value = OperationResult.success(data={"message_id": "wamid.1"})
    channel.health_check.return_value = OperationResult.success()
    return channel
