"""Template parameter builders.

One builder per TemplateKind maps event fields to the ordered, fixed-arity
list of strings the provider substitutes into the template body.

Every slot goes through the same defaulting rule: a missing, None or
blank value becomes PLACEHOLDER. The provider rejects a template send with
an empty parameter or the wrong number of parameters, so builders never
return fewer slots than the template declares and never raise.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from types import MappingProxyType
from typing import Any, Callable, List

import pytz
import structlog

from infrastructure.notifications.models import TemplateKind

logger = structlog.get_logger()

PLACEHOLDER = "-"
DISPLAY_TIMEZONE = pytz.timezone("Australia/Adelaide")
DATE_FORMAT = "%d/%m/%Y"

Builder = Callable[[Mapping], List[str]]


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _pick(fields: Any, *names: str) -> Any:
    """Return the first non-blank value stored under any of ``names``."""
    if not isinstance(fields, Mapping):
        return None
    for name in names:
        value = fields.get(name)
        if not _is_blank(value):
            return value
    return None


def display_value(value: Any) -> str:
    """Render a value for one template slot.

    Whitespace runs (including new lines and tabs, which the provider
    rejects inside parameters) collapse to single spaces. Sequences are
    joined with ", ".
    """
    if isinstance(value, (list, tuple, set, frozenset)):
        parts = [display_value(item) for item in value if not _is_blank(item)]
        parts = [part for part in parts if part != PLACEHOLDER]
        return ", ".join(parts) if parts else PLACEHOLDER
    if _is_blank(value):
        return PLACEHOLDER
    try:
        text = value if isinstance(value, str) else str(value)
    except Exception:  # pylint: disable=broad-except
        logger.warning("template_parameter_unrenderable", value_type=type(value).__name__)
        return PLACEHOLDER
    text = " ".join(text.split())
    return text or PLACEHOLDER


def format_currency(value: Any) -> str:
    """Render a numeric amount as ``$1234.50``; other values pass through."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return display_value(value)
    if isinstance(value, float) and not math.isfinite(value):
        return display_value(value)
    try:
        amount = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        # ValueError: int too large for str()
        return display_value(value)
    if not amount.is_finite():
        return display_value(value)
    if amount < 0:
        return f"-${-amount}"
    return f"${amount}"


def _as_datetime(value: Any) -> datetime | date | None:
    if isinstance(value, (datetime, date)):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def _localize(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(DISPLAY_TIMEZONE)


def format_date(value: Any) -> str:
    """Render dates and ISO strings as ``DD/MM/YYYY``; other values pass through.

    Timezone-aware datetimes are shown in the display timezone.
    """
    parsed = _as_datetime(value)
    if parsed is None:
        return display_value(value)
    if isinstance(parsed, datetime):
        parsed = _localize(parsed)
    return parsed.strftime(DATE_FORMAT)


def format_time(value: Any) -> str:
    """Render times as ``h:mm AM/PM``; strings pass through."""
    if isinstance(value, datetime):
        value = _localize(value)
    elif not isinstance(value, time):
        return display_value(value)
    hour = value.hour % 12 or 12
    return f"{hour}:{value.minute:02d} {'AM' if value.hour < 12 else 'PM'}"


def build_stage_completed(fields: Mapping) -> List[str]:
    """project, client, lot, stage name, status"""
    return [
        display_value(_pick(fields, "project_name", "project")),
        display_value(_pick(fields, "client_name", "client")),
        display_value(_pick(fields, "lot_id", "lot", "lot_name")),
        display_value(_pick(fields, "stage_name", "name", "stage")),
        display_value(_pick(fields, "status")),
    ]


def materials_status_text(fields: Mapping) -> Any:
    """Status text of a materials-to-order update.

    Explicit status text wins (e.g. ``"Acme Ordered"``); otherwise the list
    was either ``generated`` (new) or ``updated``.
    """
    status = _pick(fields, "status", "status_text")
    if status is not None:
        return status
    is_new = _pick(fields, "is_new")
    if is_new is None:
        return None
    return "generated" if is_new else "updated"


def build_materials_to_order_update(fields: Mapping) -> List[str]:
    """status text, project, lot, client"""
    return [
        display_value(materials_status_text(fields)),
        display_value(_pick(fields, "project_name", "project")),
        display_value(_pick(fields, "lot_name", "lot_id", "lot")),
        display_value(_pick(fields, "client_name", "client")),
    ]


def build_supplier_statement_added(fields: Mapping) -> List[str]:
    """supplier, period, amount, due date"""
    return [
        display_value(_pick(fields, "supplier_name", "supplier")),
        display_value(_pick(fields, "year_month", "month_year", "period")),
        format_currency(_pick(fields, "amount")),
        format_date(_pick(fields, "due_date")),
    ]


def build_stock_transaction_created(fields: Mapping) -> List[str]:
    """item description, transaction type, quantity, dimensions"""
    return [
        display_value(_pick(fields, "item_name", "item_description", "item")),
        display_value(_pick(fields, "transaction_type", "status")),
        display_value(_pick(fields, "quantity", "quantity_added")),
        display_value(_pick(fields, "dimensions")),
    ]


def build_installer_assigned(fields: Mapping) -> List[str]:
    """installer name, project, lot, deep link"""
    return [
        display_value(_pick(fields, "installer_name", "installer")),
        display_value(_pick(fields, "project_name", "project")),
        display_value(_pick(fields, "lot_id", "lot", "lot_name")),
        display_value(_pick(fields, "link", "deep_link", "url")),
    ]


def build_meeting_confirmation(fields: Mapping) -> List[str]:
    """title, projects, lot/client, date, time, first participant, others, notes

    ``starts_at`` may stand in for separate date and time fields, and a
    ``participants`` list for the first/remaining participant fields.
    """
    starts_at = _pick(fields, "starts_at", "date_time")
    participant1 = _pick(fields, "participant1", "first_participant")
    others = _pick(
        fields, "participant2_plus", "remaining_participants", "other_participants"
    )
    participants = _pick(fields, "participants")
    if participant1 is None and isinstance(participants, (list, tuple)):
        named = [p for p in participants if not _is_blank(p)]
        if named:
            participant1 = named[0]
            others = others if others is not None else named[1:]

    return [
        display_value(_pick(fields, "title")),
        display_value(_pick(fields, "project_names", "projects")),
        display_value(_pick(fields, "lot_id_client", "lots")),
        format_date(_pick(fields, "date") or starts_at),
        format_time(_pick(fields, "time") or starts_at),
        display_value(participant1),
        display_value(others),
        display_value(_pick(fields, "notes")),
    ]


@dataclass(frozen=True)
class TemplateSpec:
    """Fixed shape of one template: its parameter count and builder."""

    kind: TemplateKind
    arity: int
    builder: Builder


TEMPLATE_SPECS: Mapping[TemplateKind, TemplateSpec] = MappingProxyType(
    {
        TemplateKind.STAGE_COMPLETED: TemplateSpec(
            TemplateKind.STAGE_COMPLETED, 5, build_stage_completed
        ),
        TemplateKind.MATERIALS_TO_ORDER_UPDATE: TemplateSpec(
            TemplateKind.MATERIALS_TO_ORDER_UPDATE, 4, build_materials_to_order_update
        ),
        TemplateKind.SUPPLIER_STATEMENT_ADDED: TemplateSpec(
            TemplateKind.SUPPLIER_STATEMENT_ADDED, 4, build_supplier_statement_added
        ),
        TemplateKind.STOCK_TRANSACTION_CREATED: TemplateSpec(
            TemplateKind.STOCK_TRANSACTION_CREATED, 4, build_stock_transaction_created
        ),
        TemplateKind.INSTALLER_ASSIGNED: TemplateSpec(
            TemplateKind.INSTALLER_ASSIGNED, 4, build_installer_assigned
        ),
        TemplateKind.MEETING_CONFIRMATION: TemplateSpec(
            TemplateKind.MEETING_CONFIRMATION, 8, build_meeting_confirmation
        ),
    }
)


def arity_of(kind: TemplateKind) -> int:
    """Number of parameters the template declares."""
    return TEMPLATE_SPECS[kind].arity


def build_parameters(kind: TemplateKind, fields: Any) -> List[str]:
    """Build the parameter list for ``kind`` from event fields.

    Args:
        kind: Template to build for
        fields: Event fields (any shape; non-mappings yield all placeholders)

    Returns:
        Exactly ``arity_of(kind)`` non-empty strings
    """
    return TEMPLATE_SPECS[kind].builder(fields)
