"""Template resolution.

Decides which single template applies to a DomainEvent and which
preference flag gates it. Resolution is a pure function of the event.
"""

from types import MappingProxyType
from typing import Mapping, NamedTuple, Optional

from infrastructure.notifications.models import DomainEvent, EventKind, TemplateKind
from infrastructure.notifications.parameters import materials_status_text

# Pipeline stage name -> per-stage preference flag
STAGE_FIELD_MAP: Mapping[str, str] = MappingProxyType(
    {
        "quote_approve": "stage_quote_approve",
        "material_appliances_selection": "stage_material_appliances_selection",
        "drafting": "stage_drafting",
        "drafting_revision": "stage_drafting_revision",
        "final_design_approval": "stage_final_design_approval",
        "site_measurements": "stage_site_measurements",
        "final_approval_for_production": "stage_final_approval_for_production",
        "machining_out": "stage_machining_out",
        "material_order": "stage_material_order",
        "cnc": "stage_cnc",
        "assembly": "stage_assembly",
        "delivery": "stage_delivery",
        "installation": "stage_installation",
        "invoice_sent": "stage_invoice_sent",
        "maintenance": "stage_maintenance",
        "job_completion": "stage_job_completion",
    }
)

# Event kind -> template inferred when no explicit override is given
KIND_TEMPLATE_MAP: Mapping[EventKind, TemplateKind] = MappingProxyType(
    {
        EventKind.STAGE_UPDATE: TemplateKind.STAGE_COMPLETED,
        EventKind.MATERIAL_ORDER: TemplateKind.MATERIALS_TO_ORDER_UPDATE,
        EventKind.SUPPLIER_STATEMENT: TemplateKind.SUPPLIER_STATEMENT_ADDED,
        EventKind.STOCK_TRANSACTION: TemplateKind.STOCK_TRANSACTION_CREATED,
        EventKind.INSTALLER_ASSIGNMENT: TemplateKind.INSTALLER_ASSIGNED,
        EventKind.MEETING: TemplateKind.MEETING_CONFIRMATION,
    }
)

MATERIAL_TO_ORDER_FIELD = "material_to_order"
MATERIAL_TO_ORDER_ORDERED_FIELD = "material_to_order_ordered"
ORDERED_MARKER = "Ordered"


class TemplateResolution(NamedTuple):
    """Resolved template and the preference flag that gates it.

    ``gating_field`` may be None for a resolved template (e.g. an unknown
    stage name); such a template notifies nobody.
    """

    template_kind: Optional[TemplateKind]
    gating_field: Optional[str]

    @property
    def has_template(self) -> bool:
        return self.template_kind is not None


NO_TEMPLATE = TemplateResolution(None, None)


def stage_gating_field(stage_name) -> Optional[str]:
    """Per-stage flag for a stage name, matched case-insensitively.

    ``"Drafting"``, ``"drafting"`` and ``"Site Measurements"`` all resolve;
    unknown names return None.
    """
    if not isinstance(stage_name, str):
        return None
    key = stage_name.strip().lower().replace("-", "_").replace(" ", "_")
    return STAGE_FIELD_MAP.get(key)


def gating_field_for(kind: TemplateKind, event: DomainEvent) -> Optional[str]:
    """Preference flag gating ``kind`` for this event's data."""
    if kind is TemplateKind.STAGE_COMPLETED:
        return stage_gating_field(event.get("stage_name", "name", "stage"))
    if kind is TemplateKind.MATERIALS_TO_ORDER_UPDATE:
        status = materials_status_text(event.fields)
        if isinstance(status, str) and ORDERED_MARKER in status:
            return MATERIAL_TO_ORDER_ORDERED_FIELD
        return MATERIAL_TO_ORDER_FIELD
    if kind is TemplateKind.SUPPLIER_STATEMENT_ADDED:
        return "supplier_statements"
    if kind is TemplateKind.STOCK_TRANSACTION_CREATED:
        return "stock_transactions"
    if kind is TemplateKind.INSTALLER_ASSIGNED:
        return "assign_installer"
    if kind is TemplateKind.MEETING_CONFIRMATION:
        return "meeting"
    return None


def infer_template(kind: EventKind) -> Optional[TemplateKind]:
    """Template implied by an event kind, None for UNKNOWN."""
    return KIND_TEMPLATE_MAP.get(kind)


def resolve(event: DomainEvent) -> TemplateResolution:
    """Resolve the template and gating flag for an event.

    An explicit override selects the template; the gating flag always
    follows that template's own rule, which may read event fields.

    Args:
        event: DomainEvent to resolve

    Returns:
        TemplateResolution, NO_TEMPLATE when nothing applies

    Example:
        >>> resolve(DomainEvent(kind="stage_update", fields={"stage_name": "Drafting"}))
        TemplateResolution(template_kind=<TemplateKind.STAGE_COMPLETED: 'stage_completed'>, gating_field='stage_drafting')
    """
    kind = event.explicit_template or infer_template(event.kind)
    if kind is None:
        return NO_TEMPLATE
    return TemplateResolution(kind, gating_field_for(kind, event))


class TemplateResolver:
    """Callable wrapper around resolve() for injection into the dispatcher."""

    def resolve(self, event: DomainEvent) -> TemplateResolution:
        return resolve(event)
