"""Structlog processors for notification logs.

Channel credentials and recipient phone numbers must never reach log
storage in clear text.
"""

from typing import Any

EventDict = dict[str, Any]

# Key fragments whose values are credentials
SENSITIVE_PATTERNS = frozenset(
    {"secret", "token", "api_key", "authorization", "credential", "bearer", "password"}
)

# Keys whose values are recipient phone numbers
PHONE_KEYS = frozenset({"address", "phone", "primary_phone", "secondary_phone"})


def add_app_info(app_name: str, app_version: str = "unknown"):
    """Stamp every entry with the application name and deployed version."""

    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("app_name", app_name)
        event_dict.setdefault("app_version", app_version)
        return event_dict

    return processor


def _is_sensitive(key: str) -> bool:
    key = key.lower()
    return any(pattern in key for pattern in SENSITIVE_PATTERNS)


def mask_sensitive_data(mask_value: str = "***REDACTED***"):
    """Replace the value of any credential-like key (case-insensitive).

    None values are kept so a missing token still shows as missing.
    """

    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        return {
            key: mask_value if value is not None and _is_sensitive(key) else value
            for key, value in event_dict.items()
        }

    return processor


def mask_phone_numbers(visible_digits: int = 3):
    """Hide all but the last ``visible_digits`` characters of phone values.

    Example:
        mask_phone_numbers()(None, "info", {"address": "61400123456"})
        # {"address": "********456"}
    """

    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        for key in PHONE_KEYS.intersection(event_dict):
            value = event_dict[key]
            if isinstance(value, str) and len(value) > visible_digits:
                hidden = len(value) - visible_digits
                event_dict[key] = "*" * hidden + value[hidden:]
        return event_dict

    return processor


def truncate_large_values(max_length: int = 500):
    """Cut string values longer than ``max_length``, e.g. raw API error bodies."""

    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        for key, value in event_dict.items():
            if isinstance(value, str) and len(value) > max_length:
                event_dict[key] = f"{value[:max_length]}...[truncated, {len(value)} chars total]"
        return event_dict

    return processor
