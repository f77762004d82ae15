from __future__ import annotations

from datetime import timedelta, timezone

from tests.fakes import InMemoryClockEntries, InMemoryShifts, make_shift, utc

from src.shift_coverage.shift_coverage.attendance.projector import is_effectively_missed, project_status
from src.shift_coverage.shift_coverage.attendance.service import AttendanceService
from src.shift_coverage.shift_coverage.core.enums import AttendanceStatus, ShiftStatus
from src.shift_coverage.shift_coverage.timeclock.model import ClockEntry

START = utc(2026, 3, 2, 9, 0)
SHIFT = make_shift(1, employee_id=5, start=START)


def entry(**kwargs) -> ClockEntry:
    return ClockEntry(entry_id=1, employee_id=5, shift_id=1, **kwargs)


def test_no_show_past_grace_is_missed_before_flag_is_persisted():
    assert not SHIFT.is_missed
    assert project_status(SHIFT, None, START + timedelta(minutes=16)) == AttendanceStatus.MISSED
    assert is_effectively_missed(SHIFT, None, START + timedelta(minutes=16))


def test_within_grace_window_is_in_progress():
    assert project_status(SHIFT, None, START + timedelta(minutes=15)) == AttendanceStatus.IN_PROGRESS


def test_persisted_missed_wins_over_everything():
    shift = SHIFT.with_changes(is_missed=True, status=ShiftStatus.MISSED)
    active = entry(clock_in=START + timedelta(minutes=40))
    assert project_status(shift, active, START + timedelta(hours=1)) == AttendanceStatus.MISSED


def test_late_and_started_depend_on_clock_in_time():
    now = START + timedelta(hours=2)
    assert project_status(SHIFT, entry(clock_in=START + timedelta(minutes=20)), now) == AttendanceStatus.LATE
    assert project_status(SHIFT, entry(clock_in=START + timedelta(minutes=5)), now) == AttendanceStatus.STARTED


def test_open_break_is_on_break():
    e = entry(clock_in=START, break_start=START + timedelta(hours=3))
    assert project_status(SHIFT, e, START + timedelta(hours=3, minutes=5)) == AttendanceStatus.ON_BREAK


def test_terminal_statuses():
    now = START + timedelta(hours=1)
    assert project_status(SHIFT.with_changes(status=ShiftStatus.COMPLETED), None, now) == AttendanceStatus.COMPLETED
    assert project_status(SHIFT.with_changes(status=ShiftStatus.CANCELLED), None, now) == AttendanceStatus.CANCELLED


def test_closed_entry_after_end_is_past():
    e = entry(clock_in=START, clock_out=START + timedelta(hours=8))
    assert project_status(SHIFT, e, START + timedelta(hours=10)) == AttendanceStatus.PAST


def test_future_shifts_by_calendar_day():
    now = utc(2026, 3, 2, 6, 0)
    assert project_status(SHIFT, None, now) == AttendanceStatus.TODAY
    assert project_status(make_shift(2, employee_id=5, start=utc(2026, 3, 3, 9)), None, now) == AttendanceStatus.TOMORROW
    assert project_status(make_shift(3, employee_id=5, start=utc(2026, 3, 5, 9)), None, now) == AttendanceStatus.UPCOMING


def test_calendar_day_follows_callers_timezone():
    eastern = timezone(timedelta(hours=-5))
    now = utc(2026, 3, 2, 6, 0).astimezone(eastern)  # 01:00 local on Mar 2
    late_evening_utc = make_shift(4, employee_id=5, start=utc(2026, 3, 3, 3, 0))  # 22:00 local on Mar 2
    assert project_status(late_evening_utc, None, now) == AttendanceStatus.TODAY


def test_schedule_uses_the_approved_replacements_entry():
    shift = SHIFT.with_changes(replacement_employee_id=6, replacement_approved_at=START)
    entries = InMemoryClockEntries(
        ClockEntry(entry_id=1, employee_id=5, shift_id=1, clock_in=START + timedelta(minutes=2), clock_out=START + timedelta(minutes=3)),
        ClockEntry(entry_id=2, employee_id=6, shift_id=1, clock_in=START + timedelta(minutes=30)),
    )
    service = AttendanceService(InMemoryShifts(shift), entries)

    views = service.my_schedule(5, now=START + timedelta(hours=1))

    assert len(views) == 1
    assert views[0].entry.entry_id == 2
    assert views[0].status == AttendanceStatus.LATE
    ui = AttendanceService.to_ui(views[0])
    assert ui["label"] == "Late"
    assert ui["start_time"] == "2026-03-02T09:00:00Z"


def test_backfilled_shift_is_not_missed_at_read_time():
    backfilled = SHIFT.with_changes(created_at=START + timedelta(days=1))
    now = START + timedelta(minutes=16)

    assert backfilled.is_backfilled
    assert not is_effectively_missed(backfilled, None, now)
    assert project_status(backfilled, None, now) == AttendanceStatus.IN_PROGRESS
    assert project_status(backfilled, None, START + timedelta(hours=9)) == AttendanceStatus.PAST


def test_shift_created_before_its_start_is_not_backfilled():
    planned = SHIFT.with_changes(created_at=START - timedelta(days=2))

    assert not planned.is_backfilled
    assert is_effectively_missed(planned, None, START + timedelta(minutes=16))
