"""Structlog configuration.

Every log line passes through redaction of channel credentials and
recipient phone numbers before it is rendered: console output in
development, JSON in production. Output is silenced under pytest unless
a test passes explicit overrides.

Usage:
    from infrastructure.logging import get_module_logger

    logger = get_module_logger()
    logger.info("notification_dispatched", sent=3, failed=0)
"""

import inspect
import logging
import sys
from typing import Any, List, Optional

import structlog
from structlog.stdlib import BoundLogger

from infrastructure.configuration import Settings
from infrastructure.logging.formatters import (
    add_app_info,
    mask_phone_numbers,
    mask_sensitive_data,
    truncate_large_values,
)

APP_NAME = "back-office-notifications"
SILENT = logging.CRITICAL + 1


def _silence() -> BoundLogger:
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", level=SILENT, force=True)
    return structlog.stdlib.get_logger()


def build_processors(app_version: str, production: bool) -> List[Any]:
    """Processor chain shared by console and JSON output.

    Redaction runs after dispatch context is merged, so a phone number
    bound as context is masked too.
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if production
        else structlog.dev.ConsoleRenderer()
    )
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_info(APP_NAME, app_version),
        mask_sensitive_data(),
        mask_phone_numbers(),
        truncate_large_values(),
        structlog.processors.format_exc_info,
        renderer,
    ]


def configure_logging(
    log_level: Optional[str] = None,
    is_production: Optional[bool] = None,
) -> BoundLogger:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: Level name; defaults to Settings.LOG_LEVEL.
        is_production: JSON output when True; defaults to Settings.is_production.

    Returns:
        Configured logger instance
    """
    if "pytest" in sys.modules and log_level is None and is_production is None:
        return _silence()

    settings = Settings() if log_level is None or is_production is None else None
    if log_level is None:
        log_level = settings.LOG_LEVEL
    if is_production is None:
        is_production = settings.is_production
    app_version = settings.GIT_SHA if settings is not None else "unknown"

    structlog.configure(
        processors=build_processors(app_version, is_production),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper(), logging.INFO),
        force=True,
    )
    return structlog.stdlib.get_logger()


logger: BoundLogger = configure_logging()


def get_module_logger() -> BoundLogger:
    """Logger bound to the calling module's name, e.g. ``jobs.meeting_reminders``."""
    frame = inspect.currentframe()
    caller = frame.f_back if frame is not None else None
    module_name = caller.f_globals.get("__name__", "unknown") if caller else "unknown"
    return logger.bind(logger_name=module_name)
