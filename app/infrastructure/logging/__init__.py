"""Structured logging infrastructure.

Centralized logging configuration and utilities using structlog.

Public API:
    - configure_logging(): Initialize logging for the application
    - get_module_logger(): Get a logger for the calling module
    - bind_dispatch_context(): Context manager for dispatch-scoped logging
    - get_dispatch_id(): Get current dispatch ID from context
    - clear_dispatch_context(): Clear all bound context

Processors:
    - add_app_info(): Add app name/version
    - mask_sensitive_data(): Redact credential fields
    - mask_phone_numbers(): Hide recipient phone numbers
    - truncate_large_values(): Limit string lengths

Example:
    from infrastructure.logging import get_module_logger, bind_dispatch_context

    logger = get_module_logger()

    with bind_dispatch_context(template="meeting_confirmation"):
        logger.info("dispatch_started")
"""

from infrastructure.logging.setup import (
    configure_logging,
    get_module_logger,
)

from infrastructure.logging.context import (
    bind_dispatch_context,
    get_dispatch_id,
    clear_dispatch_context,
)

from infrastructure.logging.formatters import (
    add_app_info,
    mask_sensitive_data,
    mask_phone_numbers,
    truncate_large_values,
    SENSITIVE_PATTERNS,
    PHONE_KEYS,
)

__all__ = [
    "configure_logging",
    "get_module_logger",
    "bind_dispatch_context",
    "get_dispatch_id",
    "clear_dispatch_context",
    "add_app_info",
    "mask_sensitive_data",
    "mask_phone_numbers",
    "truncate_large_values",
    "SENSITIVE_PATTERNS",
    "PHONE_KEYS",
]
