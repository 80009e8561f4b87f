"""Business rules deriving records and fields from other records.

Everything here is a pure function over :mod:`cleanswift.models` objects; the
repositories and :class:`cleanswift.scheduling.SchedulingService` decide when
to apply them and persist the results.
"""
from __future__ import annotations

import copy
import logging
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence

from dateutil.relativedelta import relativedelta

from cleanswift.models import (
    Appointment,
    ChecklistItem,
    ChecklistTemplate,
    Client,
    InventoryItem,
    Invoice,
    InvoiceItem,
    Recurrence,
    Status,
    generate_id,
)

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
RECURRENCE_HORIZON = relativedelta(months=6)


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------
def stock_status(quantity: float, min_threshold: float) -> Status:
    """Return ``Low Stock`` when ``quantity`` is at or below the threshold."""

    return Status.LOW_STOCK if quantity <= min_threshold else Status.IN_STOCK


def apply_stock_status(item: InventoryItem) -> InventoryItem:
    item.status = stock_status(item.quantity, item.min_threshold)
    return item


# ---------------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------------
def invoice_total(items: Iterable[InvoiceItem]) -> float:
    return round(sum(item.quantity * item.unit_price for item in items), 2)


def _hours_text(hours: float) -> str:
    return f"{hours:g}"


def invoice_for_appointment(appointment: Appointment, *, issue_date: date) -> Invoice:
    """Build the companion invoice of a freshly booked appointment."""

    item = InvoiceItem(
        id=generate_id(),
        description=f"{appointment.service_type} ({_hours_text(appointment.estimated_hours)} hrs)",
        quantity=appointment.estimated_hours,
        unit_price=appointment.rate,
    )
    return Invoice(
        id=generate_id(),
        client_id=appointment.client_id,
        appointment_id=appointment.id,
        client_name=appointment.client_name,
        date=issue_date.strftime(DATE_FORMAT),
        due_date=appointment.date,
        status=Status.UNPAID,
        items=[item],
        notes=f"Generated for appointment on {appointment.date} (status: {appointment.status.value}).",
        amount=invoice_total([item]),
    )


def reconcile_invoice(invoice: Invoice, appointment: Appointment, actual_hours: float) -> Invoice:
    """Replace the invoice's line with one billed on ``actual_hours``."""

    hours = round(actual_hours, 2)
    item_id = invoice.items[0].id if invoice.items and invoice.items[0].id else generate_id()
    invoice.items = [
        InvoiceItem(
            id=item_id,
            description=f"{appointment.service_type} ({_hours_text(hours)} hrs)",
            quantity=hours,
            unit_price=appointment.rate,
        )
    ]
    invoice.amount = invoice_total(invoice.items)
    return invoice


# ---------------------------------------------------------------------------
# Recurrence
# ---------------------------------------------------------------------------
def parse_date(value: str) -> date:
    return date.fromisoformat(value.strip())


def recurrence_offset(recurrence: Recurrence, occurrence: int):
    """Return the offset of the ``occurrence``-th repetition from the base date."""

    if recurrence is Recurrence.WEEKLY:
        return timedelta(days=7 * occurrence)
    if recurrence is Recurrence.BIWEEKLY:
        return timedelta(days=14 * occurrence)
    if recurrence is Recurrence.MONTHLY:
        return relativedelta(months=occurrence)
    raise ValueError(f"Unsupported recurrence: {recurrence!r}")


def recurrence_dates(base: date, recurrence: Recurrence) -> List[date]:
    """Return every repetition date after ``base`` up to and including base + 6 months."""

    horizon = base + RECURRENCE_HORIZON
    dates: List[date] = []
    occurrence = 1
    while True:
        candidate = base + recurrence_offset(recurrence, occurrence)
        if candidate > horizon:
            break
        dates.append(candidate)
        occurrence += 1
    return dates


def expand_series(base: Appointment) -> List[Appointment]:
    """Assign a series id to ``base`` and return it followed by its siblings.

    Non-recurring appointments come back alone and unchanged.
    """

    if base.recurrence is None:
        return [base]
    if not base.series_id:
        base.series_id = generate_id()

    siblings: List[Appointment] = []
    for when in recurrence_dates(parse_date(base.date), base.recurrence):
        sibling = copy.deepcopy(base)
        sibling.id = generate_id()
        sibling.date = when.strftime(DATE_FORMAT)
        siblings.append(sibling)
    logger.debug("Expanded series %s into %d siblings", base.series_id, len(siblings))
    return [base, *siblings]


def series_tail(series: Sequence[Appointment], trigger: Appointment) -> List[str]:
    """Return ids of ``trigger`` and every series member on or after it."""

    cutoff = (trigger.date, trigger.time)
    ids = [member.id for member in series if (member.date, member.time) >= cutoff]
    if trigger.id not in ids:
        ids.append(trigger.id)
    return ids


# ---------------------------------------------------------------------------
# Checklists
# ---------------------------------------------------------------------------
def checklist_for_client(client: Optional[Client]) -> Optional[List[ChecklistItem]]:
    """Return an independent copy of the client's checklist."""

    if client is None or client.checklist is None:
        return None
    return copy.deepcopy(client.checklist)


def checklist_from_template(template: ChecklistTemplate) -> List[ChecklistItem]:
    return [
        ChecklistItem(id=generate_id(), task=item.task, frequency=item.frequency, completed=False)
        for item in template.items
    ]


def incomplete_tasks(checklist: Optional[Sequence[ChecklistItem]]) -> List[str]:
    return [item.task for item in checklist or [] if not item.completed]


__all__ = [
    "DATE_FORMAT",
    "apply_stock_status",
    "checklist_for_client",
    "checklist_from_template",
    "expand_series",
    "incomplete_tasks",
    "invoice_for_appointment",
    "invoice_total",
    "parse_date",
    "reconcile_invoice",
    "recurrence_dates",
    "recurrence_offset",
    "series_tail",
    "stock_status",
]
