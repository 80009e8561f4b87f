"""Appointment workflows spanning several repositories.

:class:`SchedulingService` runs the cross-entity rules right after the
primitive repository calls they depend on: booking expands recurrences and
creates the companion invoice, removing a client from rotation trims the
future of a series, and finishing a job reconciles its invoice with the
hours actually worked.  Nothing here is atomic across calls; a failure half
way leaves the earlier writes in place.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from cleanswift import job_timer, rules
from cleanswift.models import Appointment, Client, Invoice, generate_id
from cleanswift.repositories import RecordNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class Booking:
    appointments: List[Appointment] = field(default_factory=list)
    invoice: Optional[Invoice] = None

    @property
    def appointment(self) -> Appointment:
        return self.appointments[0]


class SchedulingService:
    """Book, edit and run appointments against a :class:`db.DataStore`."""

    def __init__(self, store, *, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._store = store
        self._clock = clock or job_timer.utc_now

    def _get(self, appointment_id: str) -> Appointment:
        appointment = self._store.appointments.get(appointment_id)
        if appointment is None:
            raise RecordNotFoundError("Appointment", appointment_id)
        return appointment

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------
    def book_appointment(self, appointment: Appointment, *, client: Optional[Client] = None) -> Booking:
        """Persist a new appointment, its recurrence siblings and its invoice.

        When ``client`` is given, its name, primary address, house notes and
        checklist fill in whatever the appointment leaves blank.  Only the
        first appointment of a series is invoiced.  The ``appointment``
        passed in is left untouched.
        """

        appointment = replace(appointment)
        if client is not None:
            appointment.client_id = appointment.client_id or client.id
            appointment.client_name = appointment.client_name or client.name
            location = client.primary_location()
            if not appointment.address and location is not None:
                appointment.address = location.address
            if not appointment.notes and client.house_notes:
                appointment.notes = client.house_notes
            if appointment.checklist is None:
                appointment.checklist = rules.checklist_for_client(client)
        if not appointment.id:
            appointment.id = generate_id()

        series = rules.expand_series(appointment)
        created = self._store.appointments.create_many(series)
        invoice = self._store.invoices.create(
            rules.invoice_for_appointment(created[0], issue_date=self._clock().date())
        )
        logger.info(
            "Booked appointment %s for %s (%d occurrence(s), invoice %s)",
            created[0].id,
            created[0].client_name,
            len(created),
            invoice.id,
        )
        return Booking(appointments=created, invoice=invoice)

    def edit_appointment(self, appointment: Appointment) -> Booking:
        """Save changes to an appointment, expanding a newly added recurrence."""

        existing = self._get(appointment.id)
        newly_recurring = (
            appointment.recurrence is not None and existing.recurrence is None and not existing.series_id
        )
        if not newly_recurring:
            return Booking(appointments=[self._store.appointments.update(appointment)])

        series = rules.expand_series(appointment)
        self._store.appointments.update(series[0])
        siblings = self._store.appointments.create_many(series[1:])
        return Booking(appointments=[series[0], *siblings])

    def remove_from_rotation(self, appointment_id: str) -> int:
        """Delete an appointment and every later member of its series.

        Earlier occurrences are kept for history.  Returns the number of
        appointments removed.
        """

        trigger = self._store.appointments.get(appointment_id)
        if trigger is None:
            return 0
        if not trigger.series_id:
            return self._store.appointments.delete_many([trigger.id])
        series = self._store.appointments.list_series(trigger.series_id)
        return self._store.appointments.delete_many(rules.series_tail(series, trigger))

    # ------------------------------------------------------------------
    # Job timer
    # ------------------------------------------------------------------
    def start_job(self, appointment_id: str) -> Appointment:
        appointment = job_timer.start(self._get(appointment_id), self._clock())
        return self._store.appointments.update(appointment)

    def pause_job(self, appointment_id: str) -> Appointment:
        appointment = job_timer.pause(self._get(appointment_id), self._clock())
        return self._store.appointments.update(appointment)

    def resume_job(self, appointment_id: str) -> Appointment:
        appointment = job_timer.resume(self._get(appointment_id), self._clock())
        return self._store.appointments.update(appointment)

    def complete_job(
        self, appointment_id: str, explanation: Optional[str] = None
    ) -> Tuple[Appointment, Optional[Invoice]]:
        """Stop the timer and bill the hours actually worked.

        The linked invoice is rewritten only when the tracked hours differ
        from the estimate; it is returned when it was changed.
        """

        appointment = job_timer.stop(self._get(appointment_id), self._clock(), explanation)
        appointment = self._store.appointments.update(appointment)

        actual = appointment.job_log.total_hours if appointment.job_log is not None else 0.0
        if round(actual, 2) == round(appointment.estimated_hours, 2):
            return appointment, None

        invoice = self._store.invoices.find_by_appointment(appointment.id)
        if invoice is None:
            logger.warning("No invoice linked to appointment %s; nothing to reconcile", appointment.id)
            return appointment, None
        invoice = self._store.invoices.update(rules.reconcile_invoice(invoice, appointment, actual))
        logger.info("Invoice %s now bills %.2f hours", invoice.id, round(actual, 2))
        return appointment, invoice


__all__ = ["Booking", "SchedulingService"]
