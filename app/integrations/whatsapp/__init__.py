"""WhatsApp module for sending template messages via the Cloud API."""

from .client import (
    create_authorization_header,
    build_template_payload,
    post_template_message,
    extract_message_id,
)

__all__ = [
    "create_authorization_header",
    "build_template_payload",
    "post_template_message",
    "extract_message_id",
]
