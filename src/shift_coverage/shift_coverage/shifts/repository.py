from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import WriteOutcome
from .model import Shift


class ShiftRepository(Protocol):
    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        raise NotImplementedError

    def list_overdue_scheduled(
        self,
        *,
        grace_deadline: datetime,
        employee_id: Optional[int] = None,
        company_id: Optional[int] = None,
    ) -> Sequence[Shift]:
        """Shifts still ``scheduled``, not flagged missed, starting before ``grace_deadline``.

        Back-filled shifts (created after their start) are never returned.
        """

        raise NotImplementedError

    def mark_missed(self, *, shift_id: int, missed_at: datetime) -> WriteOutcome:
        """Compare-and-swap ``scheduled -> missed``.

        Must only apply when the shift is still ``scheduled`` and not flagged,
        so concurrent callers converge on a single transition. A clock-in
        recorded against the shift in the meantime also turns the write into
        ``WriteOutcome.CONFLICT``. Store privilege failures are reported as
        ``WriteOutcome.DENIED`` rather than raised.
        """

        raise NotImplementedError

    def list_for_employee(self, *, employee_id: int, start: datetime, end: datetime) -> Sequence[Shift]:
        """Shifts assigned to ``employee_id`` starting in ``[start, end)``."""

        raise NotImplementedError

    def list_coverage_candidates(self, *, company_id: int, grace_deadline: datetime) -> Sequence[Shift]:
        """Company shifts that are missed or overdue past grace with no approved replacement.

        The caller still applies the projector; this is only the pre-filter.
        """

        raise NotImplementedError

    def list_missed_for_company(self, *, company_id: int) -> Sequence[Shift]:
        """All persisted-missed shifts of a company, newest miss first (manager view)."""

        raise NotImplementedError

    def list_approved_replacements(self, *, employee_id: int) -> Sequence[Shift]:
        """Shifts where ``employee_id`` is the approved replacement."""

        raise NotImplementedError

    def mark_replacement_started(self, *, shift_id: int, employee_id: int, started_at: datetime) -> bool:
        raise NotImplementedError
