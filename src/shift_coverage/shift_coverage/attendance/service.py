from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import format_utc, now_utc
from ..core.constants import DEFAULT_REPORT_DAYS, GRACE_MINUTES
from ..shifts.model import Shift
from ..shifts.repository import ShiftRepository
from ..timeclock.model import ClockEntry
from ..timeclock.repository import ClockEntryRepository
from .model import ShiftView
from .projector import STATUS_BADGES, STATUS_LABELS, project_status


def entries_by_shift(entries: Iterable[ClockEntry]) -> dict[int, list[ClockEntry]]:
    out: dict[int, list[ClockEntry]] = {}
    for e in entries:
        if e.shift_id is not None:
            out.setdefault(e.shift_id, []).append(e)
    return out


def pick_entry(shift: Shift, candidates: Sequence[ClockEntry]) -> Optional[ClockEntry]:
    """The entry that speaks for a shift: the worker's most recent clock-in.

    The worker is the approved replacement when there is one.
    """

    worker = shift.replacement_employee_id if shift.has_approved_replacement else shift.employee_id
    own = [e for e in candidates if e.employee_id == worker and e.clock_in is not None]
    pool = own or [e for e in candidates if e.clock_in is not None]
    if not pool:
        return None
    return max(pool, key=lambda e: e.clock_in)


class AttendanceService:
    def __init__(
        self,
        shifts: ShiftRepository,
        entries: ClockEntryRepository,
        *,
        grace_minutes: int = GRACE_MINUTES,
    ):
        self._shifts = shifts
        self._entries = entries
        self._grace_minutes = int(grace_minutes)

    def project(self, shifts: Sequence[Shift], *, now: datetime) -> list[ShiftView]:
        by_shift = entries_by_shift(self._entries.list_for_shifts([s.shift_id for s in shifts]))
        views = []
        for s in shifts:
            entry = pick_entry(s, by_shift.get(s.shift_id, []))
            views.append(
                ShiftView(
                    shift=s,
                    entry=entry,
                    status=project_status(s, entry, now, grace_minutes=self._grace_minutes),
                )
            )
        return views

    def my_schedule(
        self,
        employee_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> list[ShiftView]:
        now = now or now_utc()
        start = start or (now - timedelta(days=DEFAULT_REPORT_DAYS))
        end = end or (now + timedelta(days=DEFAULT_REPORT_DAYS))
        shifts = self._shifts.list_for_employee(employee_id=int(employee_id), start=start, end=end)
        return self.project(shifts, now=now)

    @staticmethod
    def to_ui(view: ShiftView) -> dict:
        s = view.shift
        return {
            "shift_id": s.shift_id,
            "employee_id": s.employee_id,
            "company_id": s.company_id,
            "start_time": format_utc(s.start_time),
            "end_time": format_utc(s.end_time),
            "status": view.status.value,
            "label": STATUS_LABELS[view.status],
            "badge": STATUS_BADGES.get(view.status, "secondary"),
            "is_missed": s.is_missed,
            "replacement_employee_id": s.replacement_employee_id,
            "replacement_approved_at": format_utc(s.replacement_approved_at),
            "entry_id": view.entry.entry_id if view.entry else None,
            "notes": s.notes or "",
        }
