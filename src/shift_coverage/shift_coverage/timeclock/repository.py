from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..location.model import Location
from .model import ClockEntry


class ClockEntryRepository(Protocol):
    def get_by_id(self, entry_id: int) -> Optional[ClockEntry]:
        raise NotImplementedError

    def get_active_for_employee(self, employee_id: int) -> Optional[ClockEntry]:
        raise NotImplementedError

    def has_clock_in_for_shift(self, shift_id: int) -> bool:
        raise NotImplementedError

    def list_for_shifts(self, shift_ids: Sequence[int]) -> Sequence[ClockEntry]:
        raise NotImplementedError

    def create_clock_in(
        self,
        *,
        employee_id: int,
        shift_id: Optional[int],
        clock_in: datetime,
        notes: Optional[str] = None,
    ) -> ClockEntry:
        """Insert an active entry.

        Raises AlreadyClockedInError when the store already holds an active
        entry for the employee (unique "active entry per employee" key).
        """

        raise NotImplementedError

    def attach_location(self, *, entry_id: int, clock_out: bool, location: Location) -> bool:
        raise NotImplementedError

    def start_break(self, *, entry_id: int, at: datetime) -> bool:
        """Set break_start only if the entry is open and no break was started."""

        raise NotImplementedError

    def end_break(self, *, entry_id: int, at: datetime) -> bool:
        """Set break_end only if the entry is open with an unterminated break."""

        raise NotImplementedError

    def close(
        self,
        *,
        entry_id: int,
        clock_out: datetime,
        total_hours: float,
        overtime_hours: float,
    ) -> bool:
        """Close the entry only if it is still open."""

        raise NotImplementedError

    def list_for_employee(self, *, employee_id: int, limit: int) -> Sequence[ClockEntry]:
        raise NotImplementedError

    def list_closed_for_company(self, *, company_id: int, start: datetime, end: datetime) -> Sequence[ClockEntry]:
        """Closed entries of the company's employees with clock_in in ``[start, end)``."""

        raise NotImplementedError
