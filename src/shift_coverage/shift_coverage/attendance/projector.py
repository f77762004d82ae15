"""Attendance status projection.

``project_status`` is pure: it only combines a shift, the clock entry
worked against it (if any) and the wall clock. Every read path uses it so
a persisted ``is_missed`` flag and read-time grace math never disagree.
The checks form a priority chain; missed always wins so a no-show past
grace never looks on time.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from ..core.constants import GRACE_MINUTES
from ..core.enums import AttendanceStatus, ShiftStatus
from ..shifts.model import Shift
from ..timeclock.model import ClockEntry


def grace_deadline_for(shift: Shift, *, grace_minutes: int = GRACE_MINUTES) -> datetime:
    return shift.start_time + timedelta(minutes=grace_minutes)


def is_effectively_missed(
    shift: Shift,
    entry: Optional[ClockEntry],
    now: datetime,
    *,
    grace_minutes: int = GRACE_MINUTES,
) -> bool:
    if shift.is_missed or shift.status == ShiftStatus.MISSED:
        return True
    if shift.status != ShiftStatus.SCHEDULED:
        return False
    if shift.is_backfilled:
        return False
    clocked_in = entry is not None and entry.clock_in is not None
    return not clocked_in and now > grace_deadline_for(shift, grace_minutes=grace_minutes)


def project_status(
    shift: Shift,
    entry: Optional[ClockEntry],
    now: datetime,
    *,
    grace_minutes: int = GRACE_MINUTES,
) -> AttendanceStatus:
    if is_effectively_missed(shift, entry, now, grace_minutes=grace_minutes):
        return AttendanceStatus.MISSED
    if shift.status == ShiftStatus.COMPLETED:
        return AttendanceStatus.COMPLETED
    if shift.status == ShiftStatus.CANCELLED:
        return AttendanceStatus.CANCELLED

    if entry is not None:
        if entry.on_break:
            return AttendanceStatus.ON_BREAK
        if entry.is_active:
            if entry.clock_in > grace_deadline_for(shift, grace_minutes=grace_minutes):
                return AttendanceStatus.LATE
            return AttendanceStatus.STARTED

    if shift.start_time <= now <= shift.end_time:
        return AttendanceStatus.IN_PROGRESS
    if now > shift.end_time:
        return AttendanceStatus.PAST

    # Calendar days are judged in the caller's timezone (carried by ``now``).
    start_day = shift.start_time.astimezone(now.tzinfo).date() if now.tzinfo else shift.start_time.date()
    today = now.date()
    if start_day == today:
        return AttendanceStatus.TODAY
    if start_day == today + timedelta(days=1):
        return AttendanceStatus.TOMORROW
    return AttendanceStatus.UPCOMING


STATUS_LABELS = {
    AttendanceStatus.MISSED: "Missed",
    AttendanceStatus.COMPLETED: "Completed",
    AttendanceStatus.CANCELLED: "Cancelled",
    AttendanceStatus.ON_BREAK: "On Break",
    AttendanceStatus.LATE: "Late",
    AttendanceStatus.STARTED: "Started",
    AttendanceStatus.IN_PROGRESS: "In Progress",
    AttendanceStatus.PAST: "Past",
    AttendanceStatus.TODAY: "Today",
    AttendanceStatus.TOMORROW: "Tomorrow",
    AttendanceStatus.UPCOMING: "Upcoming",
}

STATUS_BADGES = {
    AttendanceStatus.MISSED: "destructive",
    AttendanceStatus.CANCELLED: "destructive",
    AttendanceStatus.LATE: "warning",
    AttendanceStatus.ON_BREAK: "warning",
    AttendanceStatus.STARTED: "success",
    AttendanceStatus.IN_PROGRESS: "success",
    AttendanceStatus.TODAY: "default",
}
