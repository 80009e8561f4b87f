from __future__ import annotations

from datetime import date

import pytest

from cleanswift import rules
from cleanswift.models import (
    Appointment,
    ChecklistItem,
    ChecklistTemplate,
    Client,
    Frequency,
    Invoice,
    InvoiceItem,
    Recurrence,
    Status,
    TemplateItem,
)


@pytest.mark.parametrize(
    ("quantity", "threshold", "expected"),
    [(0, 0, Status.LOW_STOCK), (4.99, 5, Status.LOW_STOCK), (5, 5, Status.LOW_STOCK), (5.01, 5, Status.IN_STOCK)],
)
def test_stock_status_boundary(quantity, threshold, expected) -> None:
    assert rules.stock_status(quantity, threshold) is expected


def test_weekly_series_runs_six_months_inclusive() -> None:
    base = Appointment(id="base", date="2024-01-01", time="09:00", recurrence=Recurrence.WEEKLY, notes="Weekly")

    series = rules.expand_series(base)

    dates = [appointment.date for appointment in series]
    assert dates[0] == "2024-01-01"
    assert dates[1] == "2024-01-08"
    assert dates[-1] == "2024-07-01"
    assert len(series) == 27
    assert len({appointment.id for appointment in series}) == 27
    assert {appointment.series_id for appointment in series} == {base.series_id}
    assert base.series_id
    assert all(appointment.notes == "Weekly" for appointment in series)


def test_biweekly_and_monthly_offsets_start_from_base_date() -> None:
    assert rules.recurrence_dates(date(2024, 1, 1), Recurrence.BIWEEKLY)[:2] == [date(2024, 1, 15), date(2024, 1, 29)]

    monthly = rules.recurrence_dates(date(2024, 1, 31), Recurrence.MONTHLY)

    assert monthly == [
        date(2024, 2, 29),
        date(2024, 3, 31),
        date(2024, 4, 30),
        date(2024, 5, 31),
        date(2024, 6, 30),
        date(2024, 7, 31),
    ]


def test_existing_series_id_is_kept() -> None:
    base = Appointment(id="b", date="2024-01-01", recurrence=Recurrence.MONTHLY, series_id="s-9")

    series = rules.expand_series(base)

    assert {appointment.series_id for appointment in series} == {"s-9"}
    assert len(series) == 7


def test_non_recurring_appointment_is_not_expanded() -> None:
    base = Appointment(id="b", date="2024-01-01")

    assert rules.expand_series(base) == [base]
    assert base.series_id is None


def test_siblings_get_independent_checklists() -> None:
    base = Appointment(
        id="b",
        date="2024-01-01",
        recurrence=Recurrence.BIWEEKLY,
        checklist=[ChecklistItem("t1", "Mop", Frequency.EVERY_TIME, False)],
    )

    series = rules.expand_series(base)
    series[1].checklist[0].completed = True

    assert base.checklist[0].completed is False
    assert series[2].checklist[0].completed is False


def test_series_tail_includes_same_day_later_times() -> None:
    series = [
        Appointment(id="a", date="2024-01-01", time="09:00"),
        Appointment(id="b", date="2024-01-08", time="08:00"),
        Appointment(id="c", date="2024-01-08", time="10:00"),
        Appointment(id="d", date="2024-01-15", time="07:00"),
    ]

    assert rules.series_tail(series, series[1]) == ["b", "c", "d"]


def test_invoice_for_appointment() -> None:
    appointment = Appointment(
        id="a-1",
        client_id="c-1",
        client_name="Johnson Family",
        date="2024-05-03",
        service_type="Deep Clean",
        rate=50,
        estimated_hours=2,
    )

    invoice = rules.invoice_for_appointment(appointment, issue_date=date(2024, 5, 1))

    assert invoice.amount == 100.0
    assert invoice.appointment_id == "a-1"
    assert invoice.date == "2024-05-01"
    assert invoice.due_date == "2024-05-03"
    assert invoice.status is Status.UNPAID
    assert len(invoice.items) == 1
    assert invoice.items[0].description == "Deep Clean (2 hrs)"
    assert invoice.items[0].quantity == 2
    assert invoice.items[0].unit_price == 50
    assert "Pending" in invoice.notes


def test_reconcile_invoice_bills_actual_hours() -> None:
    appointment = Appointment(id="a-1", service_type="Standard Clean", rate=45, estimated_hours=3)
    invoice = Invoice(id="i-1", items=[InvoiceItem("line-1", "Standard Clean (3 hrs)", 3, 45)], amount=135)

    rules.reconcile_invoice(invoice, appointment, 3.5)

    assert invoice.amount == 157.5
    assert [(item.id, item.quantity, item.unit_price) for item in invoice.items] == [("line-1", 3.5, 45)]
    assert invoice.items[0].description == "Standard Clean (3.5 hrs)"


def test_checklist_for_client_is_a_deep_copy() -> None:
    client = Client(id="c", checklist=[ChecklistItem("t1", "Dust", Frequency.MONTHLY, False)])

    copied = rules.checklist_for_client(client)
    copied[0].completed = True

    assert client.checklist[0].completed is False
    assert rules.checklist_for_client(Client(id="x")) is None
    assert rules.checklist_for_client(None) is None


def test_checklist_from_template_creates_fresh_items() -> None:
    template = ChecklistTemplate(
        "tpl",
        "Move out",
        [TemplateItem("x1", "Inside oven", Frequency.MONTHLY), TemplateItem("x2", "Windows")],
    )

    items = rules.checklist_from_template(template)

    assert [item.task for item in items] == ["Inside oven", "Windows"]
    assert [item.frequency for item in items] == [Frequency.MONTHLY, Frequency.EVERY_TIME]
    assert not any(item.completed for item in items)
    assert {item.id for item in items}.isdisjoint({"x1", "x2"})
