"""WhatsApp Cloud API client.

Thin functions over the Graph API ``/messages`` endpoint for sending
pre-approved template messages. Template bodies are rendered by the
provider using strict positional substitution of the text parameters.
"""

import json
from typing import List, Sequence, Tuple

import requests
from infrastructure.logging import get_module_logger

logger = get_module_logger()

MESSAGING_PRODUCT = "whatsapp"


def create_authorization_header(access_token) -> Tuple[str, str]:
    """Create the bearer authorization header for the Graph API.

    Parameters:
    access_token: Graph API access token (system user or app token)

    Returns a ("Authorization", "Bearer <token>") tuple.
    """
    if not access_token:
        error = "WHATSAPP_ACCESS_TOKEN is missing"
        logger.error("authorization_header_creation_failed", error=error)
        raise ValueError(error)

    return "Authorization", "Bearer {}".format(access_token)


def build_template_payload(
    phone_number: str,
    template_name: str,
    parameters: Sequence[str],
    language_code: str = "en",
) -> dict:
    """Build the request body for a template message.

    Parameters:
    phone_number: Recipient in international digits-only form (e.g. 61400123456)
    template_name: Approved template name (e.g. stage_completed)
    parameters: Ordered body parameters, one per template placeholder
    language_code: Template language code

    Returns the JSON-serializable payload.
    """
    payload = {
        "messaging_product": MESSAGING_PRODUCT,
        "to": phone_number,
        "type": "template",
        "template": {
            "name": template_name,
            "language": {"code": language_code},
        },
    }

    if parameters:
        body_parameters: List[dict] = [
            {"type": "text", "text": str(value)} for value in parameters
        ]
        payload["template"]["components"] = [
            {"type": "body", "parameters": body_parameters}
        ]

    return payload


def post_template_message(api_url, access_token, payload, timeout=30):
    """Post a template message to the Graph API.

    Returns the raw ``requests.Response``; network errors propagate as
    ``requests.RequestException``.
    """
    header_key, header_value = create_authorization_header(access_token)
    headers = {header_key: header_value, "Content-Type": "application/json"}

    response = requests.post(
        api_url, data=json.dumps(payload), headers=headers, timeout=timeout
    )
    return response


def extract_message_id(response_data) -> str | None:
    """Return the provider message id from a successful send response."""
    if not isinstance(response_data, dict):
        return None
    messages = response_data.get("messages") or []
    if messages and isinstance(messages[0], dict):
        return messages[0].get("id")
    return None
