from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..location.model import Location


@dataclass(frozen=True)
class ClockEntry:
    """Domain entity: one clock session (at most one break window).

    ``total_hours`` and ``overtime_hours`` are only set on clock-out.
    """

    entry_id: int
    employee_id: int
    shift_id: Optional[int] = None
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    break_start: Optional[datetime] = None
    break_end: Optional[datetime] = None
    total_hours: Optional[float] = None
    overtime_hours: Optional[float] = None
    clock_in_location: Optional[Location] = None
    clock_out_location: Optional[Location] = None
    notes: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.clock_in is not None and self.clock_out is None

    @property
    def on_break(self) -> bool:
        return self.break_start is not None and self.break_end is None


@dataclass(frozen=True)
class WorkedHours:
    total_hours: float
    overtime_hours: float


@dataclass(frozen=True)
class HoursSummary:
    """Read-model for manager reports: one row per employee."""

    employee_id: int
    full_name: str
    total_hours: float
    overtime_hours: float
    entries: int
