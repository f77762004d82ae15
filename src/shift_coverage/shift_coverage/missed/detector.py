from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..common.datetime_utils import now_utc
from ..core.constants import GRACE_MINUTES
from ..core.enums import WriteOutcome
from ..shifts.repository import ShiftRepository
from ..timeclock.repository import ClockEntryRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectorRun:
    """What one scan did, shift ids per outcome."""

    candidates: int = 0
    marked: tuple[int, ...] = ()
    clocked_in: tuple[int, ...] = ()
    conflicts: tuple[int, ...] = ()
    denied: tuple[int, ...] = ()
    backfilled: tuple[int, ...] = ()

    @property
    def marked_any(self) -> bool:
        return bool(self.marked)


class MissedShiftDetector:
    """Forces ``scheduled -> missed`` for no-shows past the grace window.

    Idempotent and safe to run from several callers at once: the write is a
    compare-and-swap on the shift status, so only one caller's transition
    lands. No internal retry; store errors propagate and the caller re-runs
    on its own schedule.
    """

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

    def scan(
        self,
        *,
        employee_id: Optional[int] = None,
        company_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> DetectorRun:
        now = now or now_utc()
        grace_deadline = now - timedelta(minutes=self._grace_minutes)

        overdue = self._shifts.list_overdue_scheduled(
            grace_deadline=grace_deadline,
            employee_id=employee_id,
            company_id=company_id,
        )

        marked: list[int] = []
        clocked_in: list[int] = []
        conflicts: list[int] = []
        denied: list[int] = []
        backfilled: list[int] = []

        for shift in overdue:
            if shift.is_backfilled:
                backfilled.append(shift.shift_id)
                continue

            # Showed up: leave it scheduled; completion is recorded elsewhere.
            if self._entries.has_clock_in_for_shift(shift.shift_id):
                clocked_in.append(shift.shift_id)
                continue

            outcome = self._shifts.mark_missed(shift_id=shift.shift_id, missed_at=now)
            if outcome == WriteOutcome.APPLIED:
                marked.append(shift.shift_id)
                logger.info("Shift %s marked missed (employee=%s)", shift.shift_id, shift.employee_id)
            elif outcome == WriteOutcome.CONFLICT:
                conflicts.append(shift.shift_id)
            else:
                # Only managers may persist the transition; readers fall back
                # to the projector's read-time rule.
                denied.append(shift.shift_id)
                logger.warning("Not permitted to mark shift %s missed; relying on read-time status", shift.shift_id)

        return DetectorRun(
            candidates=len(overdue),
            marked=tuple(marked),
            clocked_in=tuple(clocked_in),
            conflicts=tuple(conflicts),
            denied=tuple(denied),
            backfilled=tuple(backfilled),
        )

    def check_and_mark(
        self,
        *,
        employee_id: Optional[int] = None,
        company_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        return self.scan(employee_id=employee_id, company_id=company_id, now=now).marked_any
