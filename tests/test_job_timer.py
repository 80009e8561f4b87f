from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from cleanswift import job_timer
from cleanswift.job_timer import ChecklistIncompleteError, JobTimerError, TimerState
from cleanswift.models import Appointment, ChecklistItem, JobLog, Status

T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def _at(seconds: int) -> datetime:
    return T0 + timedelta(seconds=seconds)


def test_timer_arithmetic_subtracts_closed_breaks() -> None:
    appointment = Appointment(id="a-1")

    job_timer.start(appointment, _at(0))
    job_timer.pause(appointment, _at(3600))
    job_timer.resume(appointment, _at(5400))
    job_timer.stop(appointment, _at(9000))

    assert appointment.job_log.total_hours == 2.0
    assert appointment.status is Status.COMPLETED
    assert job_timer.timer_state(appointment.job_log) is TimerState.STOPPED
    assert appointment.job_log.end_time == "2024-03-01T11:30:00.000Z"


def test_states_follow_the_log() -> None:
    appointment = Appointment(id="a-1")
    assert job_timer.timer_state(appointment.job_log) is TimerState.NOT_STARTED

    job_timer.start(appointment, _at(0))
    assert appointment.status is Status.ACTIVE
    assert job_timer.timer_state(appointment.job_log) is TimerState.RUNNING

    job_timer.pause(appointment, _at(60))
    assert job_timer.timer_state(appointment.job_log) is TimerState.PAUSED

    job_timer.start(appointment, _at(120))
    assert job_timer.timer_state(appointment.job_log) is TimerState.RUNNING
    assert appointment.job_log.breaks[0].end_time is not None


def test_elapsed_time_freezes_during_open_break() -> None:
    appointment = Appointment(id="a-1")
    job_timer.start(appointment, _at(0))
    job_timer.pause(appointment, _at(600))

    assert job_timer.elapsed_seconds(appointment.job_log, _at(900)) == 600
    assert job_timer.elapsed_seconds(appointment.job_log, _at(5000)) == 600

    job_timer.resume(appointment, _at(1200))
    assert job_timer.elapsed_seconds(appointment.job_log, _at(1500)) == 900


def test_stop_while_paused_closes_the_break() -> None:
    appointment = Appointment(id="a-1")
    job_timer.start(appointment, _at(0))
    job_timer.pause(appointment, _at(3600))

    job_timer.stop(appointment, _at(7200))

    assert appointment.job_log.total_hours == 1.0
    assert appointment.job_log.breaks[-1].end_time == appointment.job_log.end_time


@pytest.mark.parametrize(
    "action",
    [job_timer.pause, job_timer.resume, job_timer.stop],
)
def test_actions_require_a_started_job(action) -> None:
    with pytest.raises(JobTimerError):
        action(Appointment(id="a-1"), _at(0))


def test_stopped_job_cannot_restart() -> None:
    appointment = Appointment(id="a-1")
    job_timer.start(appointment, _at(0))
    job_timer.stop(appointment, _at(60))

    with pytest.raises(JobTimerError):
        job_timer.start(appointment, _at(120))
    with pytest.raises(JobTimerError):
        job_timer.pause(appointment, _at(120))


def test_pause_twice_is_rejected() -> None:
    appointment = Appointment(id="a-1")
    job_timer.start(appointment, _at(0))
    job_timer.pause(appointment, _at(10))

    with pytest.raises(JobTimerError):
        job_timer.pause(appointment, _at(20))
    assert len(appointment.job_log.breaks) == 1


def test_incomplete_checklist_requires_explanation() -> None:
    appointment = Appointment(
        id="a-1",
        notes="Kitchen first",
        checklist=[ChecklistItem("t1", "Windows", completed=False), ChecklistItem("t2", "Mop", completed=True)],
    )
    job_timer.start(appointment, _at(0))

    with pytest.raises(ChecklistIncompleteError) as excinfo:
        job_timer.stop(appointment, _at(3600), "  ")
    assert excinfo.value.tasks == ["Windows"]
    assert job_timer.timer_state(appointment.job_log) is TimerState.RUNNING

    job_timer.stop(appointment, _at(3600), "Ladder was missing")

    assert appointment.notes == "Kitchen first\nChecklist incomplete: Ladder was missing"
    assert appointment.status is Status.COMPLETED


def test_timestamps_round_trip() -> None:
    text = job_timer.format_timestamp(_at(90))

    assert text == "2024-03-01T09:01:30.000Z"
    assert job_timer.parse_timestamp(text) == _at(90)


def test_log_without_start_has_no_elapsed_time() -> None:
    assert job_timer.elapsed_seconds(None) == 0.0
    assert job_timer.elapsed_seconds(JobLog(start_time="")) == 0.0
