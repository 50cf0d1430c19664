from contextlib import asynccontextmanager
import sys
import threading
from typing import AsyncIterator, Optional, TYPE_CHECKING, cast

from fastapi import FastAPI
from structlog.stdlib import BoundLogger

from infrastructure.logging.setup import configure_logging
from infrastructure.services import (
    configure_preference_store,
    get_notification_service,
    get_settings,
)
from jobs import scheduled_tasks
from jobs.meeting_reminders import InMemoryMeetingStore, MeetingStore

if TYPE_CHECKING:
    from infrastructure.configuration import Settings


def _running_under_pytest() -> bool:
    return "pytest" in sys.modules


def _log_configuration(settings: "Settings", logger: BoundLogger) -> None:
    """Log which settings sections were loaded, without their values."""
    sections = {
        name: sorted(values)
        for name, values in settings.model_dump().items()
        if isinstance(values, dict)
    }
    logger.info(
        "configuration_loaded",
        prefix=settings.PREFIX,
        log_level=settings.LOG_LEVEL,
        git_sha=settings.GIT_SHA,
        whatsapp_configured=settings.whatsapp.is_configured,
        sections=sections,
    )


def _wire_stores(app: FastAPI) -> MeetingStore:
    """Attach the stores a deployment placed on app.state before startup.

    A preference store on ``app.state.preference_store`` replaces the
    in-process default for the notification service. The meeting store
    falls back to an empty in-process store.
    """
    preference_store = getattr(app.state, "preference_store", None)
    if preference_store is not None:
        configure_preference_store(preference_store)

    meeting_store = getattr(app.state, "meeting_store", None)
    if meeting_store is None:
        meeting_store = InMemoryMeetingStore()
        app.state.meeting_store = meeting_store
    return meeting_store


def _start_reminders(
    meeting_store: MeetingStore, settings: "Settings", logger: BoundLogger
) -> Optional[threading.Event]:
    if _running_under_pytest():
        return None
    if settings.PREFIX != "":
        logger.info("scheduled_tasks_skipped", reason="prefix_not_empty")
        return None

    scheduled_tasks.init(get_notification_service(), meeting_store, settings)
    stop_event = cast(Optional[threading.Event], scheduled_tasks.run_continuously())
    logger.info("scheduled_tasks_started")
    return stop_event


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    if _running_under_pytest():
        logger = configure_logging()
    else:
        logger = configure_logging(
            log_level=settings.LOG_LEVEL, is_production=settings.is_production
        )

    app.state.settings = settings
    logger.info("application_startup")
    _log_configuration(settings, logger)

    meeting_store = _wire_stores(app)
    app.state.scheduled_stop_event = _start_reminders(meeting_store, settings, logger)

    yield

    logger.info("application_shutdown")
    if app.state.scheduled_stop_event is not None:
        app.state.scheduled_stop_event.set()
