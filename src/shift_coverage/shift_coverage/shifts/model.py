from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from ..core.enums import ShiftStatus


@dataclass(frozen=True)
class Shift:
    """Domain entity: a scheduled work shift.

    ``start_time``/``end_time`` are aware UTC instants. ``is_missed`` and
    ``status == MISSED`` are kept in sync by the missed-shift detector.
    The shift keeps pointing at the original assignee after a replacement
    is approved; the replacement lives in ``replacement_employee_id``.
    """

    shift_id: int
    employee_id: int
    company_id: int
    start_time: datetime
    end_time: datetime
    status: ShiftStatus = ShiftStatus.SCHEDULED
    department_id: Optional[int] = None
    is_missed: bool = False
    missed_at: Optional[datetime] = None
    replacement_employee_id: Optional[int] = None
    replacement_approved_at: Optional[datetime] = None
    replacement_started_at: Optional[datetime] = None
    break_minutes: Optional[int] = None
    hourly_rate: Optional[float] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def has_approved_replacement(self) -> bool:
        return self.replacement_approved_at is not None

    @property
    def is_backfilled(self) -> bool:
        """Entered after it had already started, e.g. a schedule filled in after the fact."""
        return self.created_at is not None and self.created_at > self.start_time

    def with_changes(self, **changes) -> "Shift":
        return replace(self, **changes)
