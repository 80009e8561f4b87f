"""Job timer state machine stored in :attr:`Appointment.job_log`.

::

    NotStarted -> Running <-> Paused -> Stopped

The state is never stored on its own; it is derived from the log.  Worked
time is wall-clock time since the start minus *closed* breaks.  An open
break stops the clock at the moment it began, so a paused job never
accumulates work time.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from cleanswift import rules
from cleanswift.models import Appointment, BreakRecord, JobLog, Status

logger = logging.getLogger(__name__)


class TimerState(str, Enum):
    NOT_STARTED = "NotStarted"
    RUNNING = "Running"
    PAUSED = "Paused"
    STOPPED = "Stopped"


class JobTimerError(RuntimeError):
    """Raised for a transition the current timer state does not allow."""


class ChecklistIncompleteError(JobTimerError):
    """Raised when stopping a job with unfinished checklist items and no explanation."""

    def __init__(self, tasks: List[str]) -> None:
        super().__init__("Checklist incomplete: an explanation is required for " + ", ".join(tasks))
        self.tasks = tasks


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
        return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return moment.isoformat(timespec="milliseconds")


def parse_timestamp(value: str) -> datetime:
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def timer_state(log: Optional[JobLog]) -> TimerState:
    if log is None or not log.start_time:
        return TimerState.NOT_STARTED
    if log.end_time:
        return TimerState.STOPPED
    if log.breaks and not log.breaks[-1].end_time:
        return TimerState.PAUSED
    return TimerState.RUNNING


def closed_break_seconds(log: JobLog) -> float:
    total = 0.0
    for entry in log.breaks:
        if entry.start_time and entry.end_time:
            total += (parse_timestamp(entry.end_time) - parse_timestamp(entry.start_time)).total_seconds()
    return total


def elapsed_seconds(log: Optional[JobLog], now: Optional[datetime] = None) -> float:
    """Return worked seconds, frozen at the start of an open break."""

    if log is None or not log.start_time:
        return 0.0
    state = timer_state(log)
    if state is TimerState.STOPPED:
        until = parse_timestamp(log.end_time or "")
    elif state is TimerState.PAUSED:
        until = parse_timestamp(log.breaks[-1].start_time)
    else:
        until = now or utc_now()
    worked = (until - parse_timestamp(log.start_time)).total_seconds() - closed_break_seconds(log)
    return max(worked, 0.0)


def _require(appointment: Appointment, *allowed: TimerState) -> TimerState:
    state = timer_state(appointment.job_log)
    if state not in allowed:
        raise JobTimerError(f"Cannot do that while the job is {state.value}")
    return state


def _require_log(appointment: Appointment, *allowed: TimerState) -> JobLog:
    _require(appointment, *allowed)
    if appointment.job_log is None:
        raise JobTimerError("The job has not been started")
    return appointment.job_log


def start(appointment: Appointment, now: Optional[datetime] = None) -> Appointment:
    """Start a job, or resume it when it is paused."""

    state = _require(appointment, TimerState.NOT_STARTED, TimerState.PAUSED)
    if state is TimerState.PAUSED:
        return resume(appointment, now)
    appointment.job_log = JobLog(start_time=format_timestamp(now or utc_now()))
    appointment.status = Status.ACTIVE
    logger.info("Started job %s", appointment.id)
    return appointment


def pause(appointment: Appointment, now: Optional[datetime] = None) -> Appointment:
    log = _require_log(appointment, TimerState.RUNNING)
    log.breaks.append(BreakRecord(start_time=format_timestamp(now or utc_now())))
    return appointment


def resume(appointment: Appointment, now: Optional[datetime] = None) -> Appointment:
    log = _require_log(appointment, TimerState.PAUSED)
    log.breaks[-1].end_time = format_timestamp(now or utc_now())
    return appointment


def stop(
    appointment: Appointment,
    now: Optional[datetime] = None,
    explanation: Optional[str] = None,
) -> Appointment:
    """Finish the job, recording total worked hours and marking it Completed.

    Unfinished checklist items require ``explanation``, which is appended to
    the appointment notes.
    """

    log = _require_log(appointment, TimerState.RUNNING, TimerState.PAUSED)
    unfinished = rules.incomplete_tasks(appointment.checklist)
    explanation = (explanation or "").strip()
    if unfinished and not explanation:
        raise ChecklistIncompleteError(unfinished)

    stamp = format_timestamp(now or utc_now())
    if timer_state(log) is TimerState.PAUSED:
        log.breaks[-1].end_time = stamp

    worked = (parse_timestamp(stamp) - parse_timestamp(log.start_time)).total_seconds()
    log.total_hours = max(worked - closed_break_seconds(log), 0.0) / 3600
    log.end_time = stamp
    appointment.status = Status.COMPLETED

    if unfinished:
        line = f"Checklist incomplete: {explanation}"
        appointment.notes = f"{appointment.notes}\n{line}" if appointment.notes else line
    logger.info("Stopped job %s after %.2f hours", appointment.id, log.total_hours)
    return appointment


__all__ = [
    "ChecklistIncompleteError",
    "JobTimerError",
    "TimerState",
    "closed_break_seconds",
    "elapsed_seconds",
    "format_timestamp",
    "parse_timestamp",
    "pause",
    "resume",
    "start",
    "stop",
    "timer_state",
    "utc_now",
]
