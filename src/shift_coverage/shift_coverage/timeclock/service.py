from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.exceptions import (
    AlreadyClockedInError,
    NoActiveEntryError,
    NotFoundError,
    PermissionDeniedError,
)
from ..location.capture import LocationCapture, LocationLogger, PositionSource
from ..location.model import CLOCK_IN_LABEL, CLOCK_OUT_LABEL
from ..shifts.repository import ShiftRepository
from ..users.repository import EmployeeRepository
from .calculator.base import HoursCalculator
from .calculator.standard_calculator import StandardHoursCalculator, round_hours
from .model import ClockEntry, HoursSummary
from .repository import ClockEntryRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClockResult:
    entry: ClockEntry
    warnings: tuple[str, ...] = ()


class ClockService:
    """Clock-in/out and break bookkeeping for one employee at a time."""

    def __init__(
        self,
        entries: ClockEntryRepository,
        shifts: ShiftRepository,
        employees: EmployeeRepository,
        *,
        location_capture: LocationCapture,
        location_logger: LocationLogger,
        calculator: Optional[HoursCalculator] = None,
    ):
        self._entries = entries
        self._shifts = shifts
        self._employees = employees
        self._capture = location_capture
        self._location_log = location_logger
        self._calculator = calculator or StandardHoursCalculator()

    def _check_shift(self, *, employee_id: int, shift_id: int) -> None:
        shift = self._shifts.get_by_id(shift_id)
        if not shift:
            raise NotFoundError("Shift not found")
        if shift.employee_id == employee_id:
            return
        if shift.replacement_employee_id == employee_id and shift.has_approved_replacement:
            return
        raise PermissionDeniedError("Shift is not assigned to this employee")

    def clock_in(
        self,
        employee_id: int,
        shift_id: Optional[int] = None,
        *,
        position: Optional[PositionSource] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ClockResult:
        now = now or now_utc()
        employee_id = int(employee_id)

        if shift_id is not None:
            shift_id = int(shift_id)
            self._check_shift(employee_id=employee_id, shift_id=shift_id)

        # Fast path; the store's unique key on the active entry closes the race.
        if self._entries.get_active_for_employee(employee_id):
            raise AlreadyClockedInError("Employee is already clocked in")

        entry = self._entries.create_clock_in(employee_id=employee_id, shift_id=shift_id, clock_in=now, notes=notes)

        captured = self._capture.try_capture(position, action="Clock in")
        if captured.location:
            entry = self._record_location(entry, clock_out=False, label=CLOCK_IN_LABEL, captured_at=now, location=captured.location)

        return ClockResult(entry=entry, warnings=(captured.warning,) if captured.warning else ())

    def clock_out(
        self,
        entry_id: int,
        *,
        employee_id: Optional[int] = None,
        position: Optional[PositionSource] = None,
        now: Optional[datetime] = None,
    ) -> ClockResult:
        now = now or now_utc()
        entry = self._require_active(entry_id, employee_id=employee_id)

        hours = self._calculator.worked_hours(
            clock_in=entry.clock_in,
            clock_out=now,
            break_start=entry.break_start,
            break_end=entry.break_end,
        )
        closed = self._entries.close(
            entry_id=entry.entry_id,
            clock_out=now,
            total_hours=hours.total_hours,
            overtime_hours=hours.overtime_hours,
        )
        if not closed:
            raise NoActiveEntryError("Clock entry is already closed")

        entry = replace(entry, clock_out=now, total_hours=hours.total_hours, overtime_hours=hours.overtime_hours)

        captured = self._capture.try_capture(position, action="Clock out")
        if captured.location:
            entry = self._record_location(entry, clock_out=True, label=CLOCK_OUT_LABEL, captured_at=now, location=captured.location)

        return ClockResult(entry=entry, warnings=(captured.warning,) if captured.warning else ())

    def start_break(self, entry_id: int, *, employee_id: Optional[int] = None, now: Optional[datetime] = None) -> bool:
        entry = self._entries.get_by_id(int(entry_id))
        if not entry or not entry.is_active:
            logger.warning("start_break ignored: no active entry %s", entry_id)
            return False
        self._check_owner(entry, employee_id)
        if entry.break_start is not None:
            logger.warning("start_break ignored: entry %s already has a break window", entry_id)
            return False

        applied = self._entries.start_break(entry_id=entry.entry_id, at=now or now_utc())
        if not applied:
            logger.warning("start_break ignored: entry %s changed concurrently", entry_id)
        return applied

    def end_break(self, entry_id: int, *, employee_id: Optional[int] = None, now: Optional[datetime] = None) -> bool:
        entry = self._entries.get_by_id(int(entry_id))
        if not entry or not entry.is_active:
            logger.warning("end_break ignored: no active entry %s", entry_id)
            return False
        self._check_owner(entry, employee_id)
        if not entry.on_break:
            logger.warning("end_break ignored: entry %s has no open break", entry_id)
            return False

        applied = self._entries.end_break(entry_id=entry.entry_id, at=now or now_utc())
        if not applied:
            logger.warning("end_break ignored: entry %s changed concurrently", entry_id)
        return applied

    def get_active_entry(self, employee_id: int) -> Optional[ClockEntry]:
        return self._entries.get_active_for_employee(int(employee_id))

    def list_entries(self, employee_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[ClockEntry]:
        return self._entries.list_for_employee(employee_id=int(employee_id), limit=int(limit))

    @staticmethod
    def period_hours(entries: Iterable[ClockEntry]) -> float:
        return round_hours(sum(e.total_hours or 0.0 for e in entries))

    def hours_by_employee(self, *, company_id: int, start: datetime, end: datetime) -> list[HoursSummary]:
        rows = self._entries.list_closed_for_company(company_id=int(company_id), start=start, end=end)

        grouped: dict[int, list[ClockEntry]] = {}
        for e in rows:
            grouped.setdefault(e.employee_id, []).append(e)

        names = {emp.employee_id: emp.full_name for emp in self._employees.list_by_company(int(company_id))}

        summary = [
            HoursSummary(
                employee_id=employee_id,
                full_name=names.get(employee_id, f"#{employee_id}"),
                total_hours=self.period_hours(items),
                overtime_hours=round_hours(sum(e.overtime_hours or 0.0 for e in items)),
                entries=len(items),
            )
            for employee_id, items in grouped.items()
        ]
        summary.sort(key=lambda s: s.total_hours, reverse=True)
        return summary

    def _require_active(self, entry_id: int, *, employee_id: Optional[int]) -> ClockEntry:
        entry = self._entries.get_by_id(int(entry_id))
        if not entry or not entry.is_active:
            raise NoActiveEntryError("No active clock entry")
        self._check_owner(entry, employee_id)
        return entry

    @staticmethod
    def _check_owner(entry: ClockEntry, employee_id: Optional[int]) -> None:
        if employee_id is not None and entry.employee_id != int(employee_id):
            raise PermissionDeniedError("Clock entry belongs to another employee")

    def _record_location(self, entry: ClockEntry, *, clock_out: bool, label: str, captured_at: datetime, location) -> ClockEntry:
        try:
            self._entries.attach_location(entry_id=entry.entry_id, clock_out=clock_out, location=location)
        except Exception:
            logger.warning("Could not attach %s location to entry %s", label, entry.entry_id, exc_info=True)
        else:
            entry = replace(entry, clock_out_location=location) if clock_out else replace(entry, clock_in_location=location)

        self._location_log.record(
            employee_id=entry.employee_id,
            entry_id=entry.entry_id,
            label=label,
            location=location,
            recorded_at=captured_at,
        )
        return entry
