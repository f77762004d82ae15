from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ..attendance.projector import is_effectively_missed
from ..attendance.service import entries_by_shift, pick_entry
from ..common.datetime_utils import now_utc
from ..common.validators import optional_note
from ..core.constants import GRACE_MINUTES, SIBLING_DENIED_NOTE
from ..core.enums import CoverageStatus
from ..core.exceptions import (
    AlreadyClockedInError,
    DuplicateRequestError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from ..location.capture import PositionSource
from ..shifts.model import Shift
from ..shifts.repository import ShiftRepository
from ..timeclock.repository import ClockEntryRepository
from ..timeclock.service import ClockResult, ClockService
from ..users.model import Employee
from ..users.repository import EmployeeRepository
from .model import AvailableShift, CoverageRequest
from .repository import CoverageRequestRepository

logger = logging.getLogger(__name__)


class CoverageService:
    """Peer coverage of missed shifts, from request to manager approval.

    Role checks for the manager actions happen here as well as at the web
    boundary, so a direct caller cannot approve on behalf of another company.
    """

    def __init__(
        self,
        requests: CoverageRequestRepository,
        shifts: ShiftRepository,
        entries: ClockEntryRepository,
        employees: EmployeeRepository,
        clock: ClockService,
        *,
        grace_minutes: int = GRACE_MINUTES,
    ):
        self._requests = requests
        self._shifts = shifts
        self._entries = entries
        self._employees = employees
        self._clock = clock
        self._grace_minutes = int(grace_minutes)

    def _require_shift(self, shift_id: int) -> Shift:
        shift = self._shifts.get_by_id(int(shift_id))
        if not shift:
            raise NotFoundError("Shift not found")
        return shift

    def _require_employee(self, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(int(employee_id))
        if not employee or not employee.is_active:
            raise NotFoundError("Employee not found")
        return employee

    def _require_manager_of(self, reviewer_id: int, company_id: int) -> Employee:
        reviewer = self._require_employee(reviewer_id)
        if not reviewer.role.can_manage:
            raise PermissionDeniedError("Only managers can review coverage requests")
        if reviewer.company_id != company_id:
            raise PermissionDeniedError("Request belongs to another company")
        return reviewer

    def _require_pending(self, request_id: int) -> CoverageRequest:
        req = self._requests.get(int(request_id))
        if not req:
            raise NotFoundError("Coverage request not found")
        if not req.is_pending:
            raise ValidationError("Coverage request has already been reviewed")
        return req

    def _open_for_coverage(self, shifts: Sequence[Shift], *, now: datetime) -> list[Shift]:
        """Shifts that are effectively missed and still unclaimed."""

        by_shift = entries_by_shift(self._entries.list_for_shifts([s.shift_id for s in shifts]))
        out = []
        for s in shifts:
            if s.has_approved_replacement:
                continue
            entry = pick_entry(s, by_shift.get(s.shift_id, []))
            if is_effectively_missed(s, entry, now, grace_minutes=self._grace_minutes):
                out.append(s)
        return out

    def request_coverage(
        self,
        shift_id: int,
        replacement_employee_id: int,
        *,
        now: Optional[datetime] = None,
    ) -> CoverageRequest:
        now = now or now_utc()
        shift = self._require_shift(shift_id)
        replacement = self._require_employee(replacement_employee_id)

        if shift.company_id != replacement.company_id:
            raise PermissionDeniedError("Shift belongs to another company")
        if shift.employee_id == replacement.employee_id:
            raise ValidationError("You cannot cover your own shift")
        if shift.has_approved_replacement:
            raise ValidationError("Shift already has an approved replacement")
        if not self._open_for_coverage([shift], now=now):
            raise ValidationError("Shift is not open for coverage")

        # Advisory check; the store's unique pending key settles a race.
        if self._requests.find_pending(shift_id=shift.shift_id, replacement_employee_id=replacement.employee_id):
            raise DuplicateRequestError("You already have a pending request for this shift")

        req = self._requests.create(
            shift_id=shift.shift_id,
            original_employee_id=shift.employee_id,
            replacement_employee_id=replacement.employee_id,
            company_id=shift.company_id,
            created_at=now,
        )
        logger.info("Coverage request %s: employee %s for shift %s", req.request_id, replacement.employee_id, shift.shift_id)
        return req

    def approve_request(self, request_id: int, *, reviewer_id: int, now: Optional[datetime] = None) -> CoverageRequest:
        now = now or now_utc()
        req = self._require_pending(request_id)
        self._require_manager_of(reviewer_id, req.company_id)

        shift = self._require_shift(req.shift_id)
        if shift.has_approved_replacement:
            raise ValidationError("Shift already has an approved replacement")

        applied = self._requests.approve(
            request_id=req.request_id,
            shift_id=shift.shift_id,
            replacement_employee_id=req.replacement_employee_id,
            approved_at=now,
            reviewed_by=int(reviewer_id),
            sibling_note=SIBLING_DENIED_NOTE,
        )
        if not applied:
            raise ValidationError("Request or shift changed while approving; reload and try again")

        logger.info("Coverage request %s approved by %s", req.request_id, reviewer_id)
        return self._requests.get(req.request_id) or req

    def deny_request(
        self,
        request_id: int,
        *,
        reviewer_id: int,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CoverageRequest:
        now = now or now_utc()
        req = self._require_pending(request_id)
        self._require_manager_of(reviewer_id, req.company_id)

        if not self._requests.deny(
            request_id=req.request_id,
            reviewed_at=now,
            reviewed_by=int(reviewer_id),
            notes=optional_note(notes),
        ):
            raise ValidationError("Coverage request has already been reviewed")

        logger.info("Coverage request %s denied by %s", req.request_id, reviewer_id)
        return self._requests.get(req.request_id) or req

    def list_available(self, employee_id: int, *, now: Optional[datetime] = None) -> list[AvailableShift]:
        now = now or now_utc()
        employee = self._require_employee(employee_id)

        candidates = self._shifts.list_coverage_candidates(
            company_id=employee.company_id,
            grace_deadline=now - timedelta(minutes=self._grace_minutes),
        )
        others = [s for s in candidates if s.employee_id != employee.employee_id]
        pending = self._requests.pending_shift_ids(replacement_employee_id=employee.employee_id)

        return [
            AvailableShift(shift=s, request_pending=s.shift_id in pending)
            for s in self._open_for_coverage(others, now=now)
        ]

    def list_my_approved(self, employee_id: int) -> Sequence[Shift]:
        return self._shifts.list_approved_replacements(employee_id=int(employee_id))

    def list_requests(self, company_id: int, *, status: Optional[CoverageStatus] = None) -> Sequence[CoverageRequest]:
        return self._requests.list_for_company(company_id=int(company_id), status=status)

    def list_company_missed(self, company_id: int) -> Sequence[Shift]:
        return self._shifts.list_missed_for_company(company_id=int(company_id))

    def start_replacement_shift(
        self,
        shift_id: int,
        employee_id: int,
        *,
        position: Optional[PositionSource] = None,
        now: Optional[datetime] = None,
    ) -> ClockResult:
        now = now or now_utc()
        employee_id = int(employee_id)
        shift = self._require_shift(shift_id)

        if not shift.has_approved_replacement or shift.replacement_employee_id != employee_id:
            raise PermissionDeniedError("You are not the approved replacement for this shift")
        if self._clock.get_active_entry(employee_id):
            raise AlreadyClockedInError("Employee is already clocked in")

        original = self._employees.get_by_id(shift.employee_id)
        original_name = original.full_name if original else f"#{shift.employee_id}"

        result = self._clock.clock_in(
            employee_id,
            shift.shift_id,
            position=position,
            notes=f"Replacement shift - original employee: {original_name}",
            now=now,
        )

        if not self._shifts.mark_replacement_started(shift_id=shift.shift_id, employee_id=employee_id, started_at=now):
            logger.info("Replacement shift %s was already started; keeping first start time", shift.shift_id)
        return result
