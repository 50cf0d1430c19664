"""Unit tests for the WhatsApp Cloud API client."""

import json

import pytest
from unittest.mock import MagicMock, patch

from integrations.whatsapp import client


@pytest.mark.unit
class TestCreateAuthorizationHeader:
    def test_bearer_header(self):
        assert client.create_authorization_header("EAAG123") == (
            "Authorization",
            "Bearer EAAG123",
        )

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token_raises(self, token):
        with pytest.raises(ValueError):
            client.create_authorization_header(token)


@pytest.mark.unit
class TestBuildTemplatePayload:
    def test_payload_shape(self):
        payload = client.build_template_payload(
            "61412345678", "supplier_statement_added", ["Acme", "2025-01", "$1234.50", "15/02/2025"]
        )

        assert payload == {
            "messaging_product": "whatsapp",
            "to": "61412345678",
            "type": "template",
            "template": {
                "name": "supplier_statement_added",
                "language": {"code": "en"},
                "components": [
                    {
                        "type": "body",
                        "parameters": [
                            {"type": "text", "text": "Acme"},
                            {"type": "text", "text": "2025-01"},
                            {"type": "text", "text": "$1234.50"},
                            {"type": "text", "text": "15/02/2025"},
                        ],
                    }
                ],
            },
        }

    def test_no_parameters_omits_components(self):
        payload = client.build_template_payload("61412345678", "hello_world", [])

        assert "components" not in payload["template"]

    def test_language_code(self):
        payload = client.build_template_payload("61412345678", "stage_completed", ["x"], "en_AU")

        assert payload["template"]["language"] == {"code": "en_AU"}


@pytest.mark.unit
class TestPostTemplateMessage:
    @patch("integrations.whatsapp.client.requests.post")
    def test_posts_json_with_bearer_token(self, mock_post):
        mock_post.return_value = MagicMock(status_code=200)
        payload = {"to": "61412345678"}

        response = client.post_template_message(
            "https://graph.test/messages", "EAAG123", payload, timeout=5
        )

        assert response is mock_post.return_value
        args, kwargs = mock_post.call_args
        assert args == ("https://graph.test/messages",)
        assert json.loads(kwargs["data"]) == payload
        assert kwargs["headers"]["Authorization"] == "Bearer EAAG123"
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert kwargs["timeout"] == 5

    @patch("integrations.whatsapp.client.requests.post")
    def test_missing_token_does_not_post(self, mock_post):
        with pytest.raises(ValueError):
            client.post_template_message("https://graph.test/messages", None, {})

        mock_post.assert_not_called()


@pytest.mark.unit
class TestExtractMessageId:
    def test_message_id(self):
        data = {"messages": [{"id": "wamid.HBgL"}]}

        assert client.extract_message_id(data) == "wamid.HBgL"

    @pytest.mark.parametrize("data", [None, {}, {"messages": []}, {"messages": ["x"]}, []])
    def test_missing_message_id(self, data):
        assert client.extract_message_id(data) is None
