"""Fixtures for end-to-end dispatch tests."""

import json

import pytest
from unittest.mock import MagicMock, patch

from infrastructure.notifications import InMemoryPreferenceStore, NotificationService


class FakeGraphApi:
    """Records template message posts and answers like the Graph API."""

    def __init__(self):
        self.requests = []
        self.failing_numbers = set()

    def post(self, url, data=None, headers=None, timeout=None):
        payload = json.loads(data)
        self.requests.append({"url": url, "payload": payload, "headers": headers})
        response = MagicMock()
        if payload["to"] in self.failing_numbers:
            response.ok = False
            response.status_code = 400
            response.headers = {}
            response.json.return_value = {
                "error": {"message": "(#131026) Message undeliverable"}
            }
        else:
            response.ok = True
            response.status_code = 200
            response.json.return_value = {
                "messaging_product": "whatsapp",
                "messages": [{"id": f"wamid.{len(self.requests)}"}],
            }
        return response

    @property
    def recipients(self):
        return sorted(r["payload"]["to"] for r in self.requests)


@pytest.fixture
def graph_api():
    api = FakeGraphApi()
    with patch("integrations.whatsapp.client.requests.post", side_effect=api.post):
        yield api


@pytest.fixture
def store():
    return InMemoryPreferenceStore()


@pytest.fixture
def service(settings_factory, store):
    settings = settings_factory(
        WHATSAPP_API_URL="https://graph.facebook.com/v21.0/123456/messages",
        WHATSAPP_ACCESS_TOKEN="EAAG-test-token",
        WHATSAPP_TEMPLATE_LANGUAGE="en",
        NOTIFICATIONS_DEFAULT_REGION="AU",
    )
    return NotificationService(settings, preference_store=store)
