"""Notification dispatch core models.

A DomainEvent describes something that happened in the back office. The
dispatcher resolves it to one TemplateKind, builds the template
parameters, resolves Recipients from preference flags and returns a
DispatchResult.

Uses Pydantic BaseModel for:
- Runtime validation of loosely-typed event records
- Immutable events and recipients during a dispatch
- Consistent serialization of results for callers and logs
"""

import re
from collections.abc import Mapping
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from infrastructure.notifications.exceptions import (
    InvalidEventError,
    UnknownTemplateError,
)

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")

# Record keys that describe the event itself rather than its fields
_ENVELOPE_KEYS = frozenset(
    {"kind", "type", "notification_type", "explicit_template", "template", "fields"}
)


def _normalize_token(value: Any) -> str:
    return str(value).strip().lower().replace("-", "_").replace(" ", "_")


def to_snake_case(key: str) -> str:
    """Convert ``dueDate`` / ``stageName`` style keys to snake_case."""
    return _CAMEL_BOUNDARY.sub(r"\1_\2", key).lower()


class EventKind(Enum):
    """Kinds of domain events that can trigger a notification.

    UNKNOWN is an explicit variant: an event without a recognised kind
    resolves to no template instead of failing.
    """

    STAGE_UPDATE = "stage_update"
    MATERIAL_ORDER = "material_to_order"
    SUPPLIER_STATEMENT = "supplier_statement"
    STOCK_TRANSACTION = "stock_transaction"
    INSTALLER_ASSIGNMENT = "installer_assignment"
    MEETING = "meeting"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "EventKind":
        """Map a free-form kind tag to an EventKind, UNKNOWN when unrecognised."""
        if isinstance(value, cls):
            return value
        if value is None or not str(value).strip():
            return cls.UNKNOWN
        return _EVENT_KIND_ALIASES.get(_normalize_token(value), cls.UNKNOWN)


_EVENT_KIND_ALIASES: Dict[str, EventKind] = {
    "stage": EventKind.STAGE_UPDATE,
    "stage_update": EventKind.STAGE_UPDATE,
    "material_to_order": EventKind.MATERIAL_ORDER,
    "material_order": EventKind.MATERIAL_ORDER,
    "materials_to_order": EventKind.MATERIAL_ORDER,
    "supplier_statement": EventKind.SUPPLIER_STATEMENT,
    "stock_transaction": EventKind.STOCK_TRANSACTION,
    "installer_assignment": EventKind.INSTALLER_ASSIGNMENT,
    "assign_installer": EventKind.INSTALLER_ASSIGNMENT,
    "meeting": EventKind.MEETING,
    "meeting_confirmation": EventKind.MEETING,
    "meeting_reminder": EventKind.MEETING,
}


class TemplateKind(Enum):
    """Outbound template messages. Values are the provider template names."""

    STAGE_COMPLETED = "stage_completed"
    MATERIALS_TO_ORDER_UPDATE = "materials_to_order_list_update"
    SUPPLIER_STATEMENT_ADDED = "supplier_statement_added"
    STOCK_TRANSACTION_CREATED = "stock_transaction_created"
    INSTALLER_ASSIGNED = "installer_assigned"
    MEETING_CONFIRMATION = "meeting_confirmation"

    @classmethod
    def parse(cls, value: Any) -> "TemplateKind":
        """Map a template name (``stage_completed``, ``stage-completed``) to a kind.

        Raises:
            UnknownTemplateError: if the name matches no template.
        """
        if isinstance(value, cls):
            return value
        token = _normalize_token(value)
        for kind in cls:
            if token in (kind.value, kind.name.lower()):
                return kind
        if token == "materials_to_order_update":
            return cls.MATERIALS_TO_ORDER_UPDATE
        raise UnknownTemplateError(value)


class DomainEvent(BaseModel):
    """Something that happened and may notify subscribed users.

    Attributes:
        kind: EventKind tag; UNKNOWN when absent or unrecognised
        explicit_template: Optional override of the inferred template
        fields: Event attributes consumed by the template's parameter builder.
            camelCase keys are stored as snake_case.

    Example:
        event = DomainEvent(
            kind="stage_update",
            fields={"stage_name": "Drafting", "status": "DONE"},
        )
    """

    model_config = ConfigDict(frozen=True)

    kind: EventKind = EventKind.UNKNOWN
    explicit_template: Optional[TemplateKind] = None
    fields: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("kind", mode="before")
    @classmethod
    def parse_kind(cls, v: Any) -> EventKind:
        return EventKind.parse(v)

    @field_validator("explicit_template", mode="before")
    @classmethod
    def parse_template(cls, v: Any) -> Optional[TemplateKind]:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        if not isinstance(v, (str, TemplateKind)):
            raise ValueError(f"Template must be a name, got {type(v).__name__}")
        try:
            return TemplateKind.parse(v)
        except UnknownTemplateError as e:
            raise ValueError(str(e)) from e

    @field_validator("fields", mode="before")
    @classmethod
    def normalize_fields(cls, v: Any) -> Dict[str, Any]:
        if v is None:
            return {}
        if not isinstance(v, Mapping):
            raise ValueError(f"Event fields must be a mapping, got {type(v).__name__}")
        return {to_snake_case(str(key)): value for key, value in v.items()}

    def get(self, *names: str, default: Any = None) -> Any:
        """Return the first field present under any of ``names``."""
        for name in names:
            if name in self.fields and self.fields[name] is not None:
                return self.fields[name]
        return default

    @classmethod
    def from_record(
        cls, record: Any, template: Optional[Any] = None
    ) -> "DomainEvent":
        """Build an event from a loose record as emitted by request handlers.

        Keys are snake-cased first. The kind is read from ``kind`` or
        ``type``, the explicit template from the ``template`` argument or the
        record's ``explicit_template`` / ``notification_type``. All other
        keys, plus any nested ``fields`` mapping, become event fields.

        Args:
            record: Mapping describing the event
            template: Optional explicit template override

        Returns:
            DomainEvent

        Raises:
            InvalidEventError: record is not a mapping or has malformed parts
            UnknownTemplateError: the explicit template is not a known template
        """
        if isinstance(record, DomainEvent):
            if template is None:
                return record
            return record.model_copy(
                update={"explicit_template": _parse_override(template)}
            )

        if not isinstance(record, Mapping):
            raise InvalidEventError(
                f"Event must be a mapping or DomainEvent, got {type(record).__name__}"
            )

        record = {to_snake_case(str(key)): value for key, value in record.items()}
        kind = record.get("kind", record.get("type"))
        override = template
        if override is None:
            override = record.get(
                "explicit_template", record.get("notification_type")
            )

        nested = record.get("fields")
        if nested is not None and not isinstance(nested, Mapping):
            raise InvalidEventError(
                f"Event fields must be a mapping, got {type(nested).__name__}"
            )
        fields = {k: v for k, v in record.items() if k not in _ENVELOPE_KEYS}
        fields.update(nested or {})

        try:
            return cls(
                kind=kind,
                explicit_template=_parse_override(override),
                fields=fields,
            )
        except ValidationError as e:
            raise InvalidEventError(f"Malformed event record: {e}") from e


def _parse_override(value: Any) -> Optional[TemplateKind]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if not isinstance(value, (str, TemplateKind)):
        raise InvalidEventError(
            f"Template must be a name, got {type(value).__name__}"
        )
    return TemplateKind.parse(value)


class PreferenceSubscriber(BaseModel):
    """A user returned by the preference store for one enabled flag.

    Attributes:
        user_id: User identifier in the back-office database
        active: Whether the user account is active
        primary_phone: Employee phone number as stored (free-form)
        secondary_phone: Optional second phone number (free-form)
    """

    user_id: str
    active: bool = True
    primary_phone: Optional[str] = None
    secondary_phone: Optional[str] = None

    @field_validator("user_id", mode="before")
    @classmethod
    def coerce_user_id(cls, v: Any) -> str:
        return str(v)


class Recipient(BaseModel):
    """One (user, address) pair that receives one message.

    Attributes:
        user_id: User the address belongs to
        address: Channel address, international digits without a leading +
        is_secondary: True when the address came from the secondary phone
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    address: str
    is_secondary: bool = False


class RecipientError(BaseModel):
    """A failed send to one recipient."""

    user_id: str
    address: str
    reason: str
    error_code: Optional[str] = None


class DispatchResult(BaseModel):
    """Outcome of one dispatch call.

    Attributes:
        template_kind: Template that was resolved, None when nothing applied
        gating_field: Preference flag used to select recipients
        attempted: Number of recipients a send was attempted for
        sent: Number of successful sends
        failed: attempted - sent
        per_recipient_errors: One entry per failed recipient
        message: Human-readable summary

    Example:
        result = dispatcher.dispatch(event)
        if result.failed:
            logger.warning("notification_partially_failed", failed=result.failed)
    """

    template_kind: Optional[TemplateKind] = None
    gating_field: Optional[str] = None
    attempted: int = 0
    sent: int = 0
    failed: int = 0
    per_recipient_errors: List[RecipientError] = Field(default_factory=list)
    message: str = ""

    @model_validator(mode="after")
    def validate_counts(self) -> "DispatchResult":
        """Counts must add up and every failure must be itemised."""
        if self.sent < 0 or self.sent > self.attempted:
            raise ValueError("sent must be between 0 and attempted")
        if self.failed != self.attempted - self.sent:
            raise ValueError("failed must equal attempted - sent")
        if len(self.per_recipient_errors) != self.failed:
            raise ValueError("per_recipient_errors must list every failure")
        return self

    @property
    def is_success(self) -> bool:
        """True when no recipient failed (including the nothing-to-do case)."""
        return self.failed == 0

    @classmethod
    def nothing_to_do(
        cls,
        message: str,
        template_kind: Optional[TemplateKind] = None,
        gating_field: Optional[str] = None,
    ) -> "DispatchResult":
        """Zero-attempt successful result."""
        return cls(
            template_kind=template_kind,
            gating_field=gating_field,
            message=message,
        )
