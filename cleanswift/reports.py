"""Dashboard summary computed from appointments and inventory."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, List

from cleanswift.models import Appointment, InventoryItem, Status

EARNED_STATUSES = {Status.COMPLETED, Status.PAID}


@dataclass
class DashboardSummary:
    today: date
    todays_appointments: List[Appointment] = field(default_factory=list)
    low_stock: List[InventoryItem] = field(default_factory=list)
    week_earnings: float = 0.0
    today_potential: float = 0.0
    week_potential: float = 0.0


def week_bounds(today: date) -> tuple:
    """Return the Sunday starting the week of ``today`` and the following Saturday."""

    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def summarise(
    appointments: Iterable[Appointment],
    inventory: Iterable[InventoryItem],
    today: date,
) -> DashboardSummary:
    """Revenue figures use the estimated total (rate times estimated hours)."""

    today_text = today.isoformat()
    week_start, week_end = week_bounds(today)
    summary = DashboardSummary(today=today)

    for appointment in appointments:
        revenue = appointment.estimated_total
        if appointment.date == today_text:
            summary.todays_appointments.append(appointment)
            summary.today_potential += revenue
        try:
            when = date.fromisoformat(appointment.date)
        except ValueError:
            continue
        if week_start <= when <= week_end:
            summary.week_potential += revenue
            if appointment.status in EARNED_STATUSES:
                summary.week_earnings += revenue

    summary.todays_appointments.sort(key=lambda appointment: appointment.time)
    summary.low_stock = [item for item in inventory if item.status is Status.LOW_STOCK]
    return summary


__all__ = ["DashboardSummary", "summarise", "week_bounds"]
