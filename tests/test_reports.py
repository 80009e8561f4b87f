from __future__ import annotations

from datetime import date

from cleanswift import reports
from cleanswift.models import Appointment, InventoryItem, Status


def test_week_starts_on_sunday() -> None:
    assert reports.week_bounds(date(2024, 1, 3)) == (date(2023, 12, 31), date(2024, 1, 6))
    assert reports.week_bounds(date(2023, 12, 31)) == (date(2023, 12, 31), date(2024, 1, 6))


def test_summary_totals() -> None:
    today = date(2024, 1, 3)
    appointments = [
        Appointment(id="1", date="2024-01-03", time="13:00", rate=50, estimated_hours=2),
        Appointment(id="2", date="2024-01-03", time="09:00", rate=40, estimated_hours=1, status=Status.COMPLETED),
        Appointment(id="3", date="2023-12-31", time="09:00", rate=45, estimated_hours=3, status=Status.PAID),
        Appointment(id="4", date="2024-01-07", time="09:00", rate=100, estimated_hours=1, status=Status.COMPLETED),
        Appointment(id="5", date="not a date", rate=10, estimated_hours=1),
    ]
    inventory = [
        InventoryItem(id="i1", item_name="Gloves", status=Status.LOW_STOCK),
        InventoryItem(id="i2", item_name="Cloths", status=Status.IN_STOCK),
    ]

    summary = reports.summarise(appointments, inventory, today)

    assert [appointment.id for appointment in summary.todays_appointments] == ["2", "1"]
    assert summary.today_potential == 140
    assert summary.week_potential == 275
    assert summary.week_earnings == 175
    assert [item.id for item in summary.low_stock] == ["i1"]
