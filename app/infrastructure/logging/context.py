"""Dispatch context binding for structured logging.

Binds dispatch-scoped metadata to every log entry emitted while one
notification dispatch runs, so the resolver, recipient lookup and each
fan-out send can be correlated.

Usage:
    from infrastructure.logging import bind_dispatch_context

    with bind_dispatch_context(template="stage_completed"):
        logger.info("dispatch_started")

Dependencies:
    - structlog.contextvars
"""

import uuid
from contextlib import contextmanager
from typing import Optional, Any, Generator
import structlog


@contextmanager
def bind_dispatch_context(
    dispatch_id: Optional[str] = None,
    event_kind: Optional[str] = None,
    template: Optional[str] = None,
    **extra_context: Any,
) -> Generator[str, None, None]:
    """Bind dispatch-scoped context to all logs within the block.

    Args:
        dispatch_id: Unique dispatch identifier. Auto-generated if not provided.
        event_kind: Kind tag of the triggering domain event.
        template: Template name once resolved.
        **extra_context: Additional key-value pairs to include in logs.

    Yields:
        The dispatch_id bound for the block.

    Example:
        with bind_dispatch_context(event_kind="stage_update") as dispatch_id:
            process(event)
    """
    context: dict[str, Any] = {"dispatch_id": dispatch_id or str(uuid.uuid4())}

    if event_kind is not None:
        context["event_kind"] = event_kind

    if template is not None:
        context["template"] = template

    context.update(extra_context)

    structlog.contextvars.bind_contextvars(**context)
    try:
        yield context["dispatch_id"]
    finally:
        structlog.contextvars.unbind_contextvars(*context.keys())


def get_dispatch_id() -> Optional[str]:
    """Get the current dispatch ID from the logging context.

    Returns:
        The dispatch ID if set, None otherwise.
    """
    ctx = structlog.contextvars.get_contextvars()
    return ctx.get("dispatch_id")


def clear_dispatch_context() -> None:
    """Clear all context vars from the logging context."""
    structlog.contextvars.clear_contextvars()
