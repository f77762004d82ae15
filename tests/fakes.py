"""In-memory repositories for service and route tests.

Each fake guards its state with a lock so concurrent callers see the same
conditional-write semantics as the MySQL repositories.
"""

from __future__ import annotations

import threading
from concurrent.futures import Executor, Future
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Optional

from werkzeug.security import generate_password_hash

from src.shift_coverage.shift_coverage.core.enums import CoverageStatus, Role, ShiftStatus, WriteOutcome
from src.shift_coverage.shift_coverage.core.exceptions import AlreadyClockedInError, DuplicateRequestError
from src.shift_coverage.shift_coverage.coverage.model import CoverageRequest
from src.shift_coverage.shift_coverage.location.model import LocationLog
from src.shift_coverage.shift_coverage.shifts.model import Shift
from src.shift_coverage.shift_coverage.timeclock.model import ClockEntry
from src.shift_coverage.shift_coverage.users.model import Employee


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class ImmediateExecutor(Executor):
    """Runs submitted work inline so tests can assert on its effects."""

    def submit(self, fn, /, *args, **kwargs):
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


def make_employee(employee_id: int, *, role: Role = Role.EMPLOYEE, company_id: int = 1, password: str = "secret123") -> Employee:
    return Employee(
        employee_id=employee_id,
        full_name=f"Employee {employee_id}",
        email=f"e{employee_id}@example.com",
        password_hash=generate_password_hash(password),
        role=role,
        company_id=company_id,
    )


def make_shift(shift_id: int, *, employee_id: int, start: datetime, hours: int = 8, company_id: int = 1, **kwargs) -> Shift:
    return Shift(
        shift_id=shift_id,
        employee_id=employee_id,
        company_id=company_id,
        start_time=start,
        end_time=start + timedelta(hours=hours),
        **kwargs,
    )


class InMemoryEmployees:
    def __init__(self, *employees: Employee):
        self._by_id = {e.employee_id: e for e in employees}

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        return self._by_id.get(int(employee_id))

    def get_by_email(self, email: str) -> Optional[Employee]:
        return next((e for e in self._by_id.values() if e.email == email), None)

    def list_by_company(self, company_id: int):
        return [e for e in self._by_id.values() if e.company_id == company_id]


class InMemoryShifts:
    def __init__(self, *shifts: Shift, deny_writes: bool = False, clock_entries=None):
        self._lock = threading.Lock()
        self.shifts = {s.shift_id: s for s in shifts}
        self.deny_writes = deny_writes
        # When linked, mark_missed re-checks clock-ins like the SQL guard does.
        self.clock_entries = clock_entries
        self.mark_calls = 0

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        return self.shifts.get(int(shift_id))

    def list_overdue_scheduled(self, *, grace_deadline, employee_id=None, company_id=None):
        with self._lock:
            return [
                s
                for s in self.shifts.values()
                if s.status == ShiftStatus.SCHEDULED
                and not s.is_missed
                and s.start_time < grace_deadline
                and not s.is_backfilled
                and (employee_id is None or s.employee_id == employee_id)
                and (company_id is None or s.company_id == company_id)
            ]

    def mark_missed(self, *, shift_id: int, missed_at: datetime) -> WriteOutcome:
        if self.deny_writes:
            return WriteOutcome.DENIED
        with self._lock:
            self.mark_calls += 1
            s = self.shifts[shift_id]
            if s.status != ShiftStatus.SCHEDULED or s.is_missed:
                return WriteOutcome.CONFLICT
            if self.clock_entries is not None and self.clock_entries.has_clock_in_for_shift(shift_id):
                return WriteOutcome.CONFLICT
            self.shifts[shift_id] = s.with_changes(is_missed=True, missed_at=missed_at, status=ShiftStatus.MISSED)
            return WriteOutcome.APPLIED

    def list_for_employee(self, *, employee_id, start, end):
        items = [s for s in self.shifts.values() if s.employee_id == employee_id and start <= s.start_time < end]
        return sorted(items, key=lambda s: s.start_time)

    def list_coverage_candidates(self, *, company_id, grace_deadline):
        return [
            s
            for s in self.shifts.values()
            if s.company_id == company_id
            and s.replacement_approved_at is None
            and (
                s.is_missed
                or s.status == ShiftStatus.MISSED
                or (s.status == ShiftStatus.SCHEDULED and s.start_time < grace_deadline and not s.is_backfilled)
            )
        ]

    def list_missed_for_company(self, *, company_id):
        return [s for s in self.shifts.values() if s.company_id == company_id and s.is_missed]

    def list_approved_replacements(self, *, employee_id):
        return [
            s
            for s in self.shifts.values()
            if s.replacement_employee_id == employee_id and s.replacement_approved_at is not None
        ]

    def mark_replacement_started(self, *, shift_id, employee_id, started_at) -> bool:
        with self._lock:
            s = self.shifts[shift_id]
            if s.replacement_employee_id != employee_id or s.replacement_approved_at is None or s.replacement_started_at:
                return False
            self.shifts[shift_id] = s.with_changes(replacement_started_at=started_at)
            return True


class InMemoryClockEntries:
    def __init__(self, *entries: ClockEntry):
        self._lock = threading.Lock()
        self.entries = {e.entry_id: e for e in entries}
        self._next_id = max(self.entries, default=0) + 1

    def get_by_id(self, entry_id: int) -> Optional[ClockEntry]:
        return self.entries.get(int(entry_id))

    def get_active_for_employee(self, employee_id: int) -> Optional[ClockEntry]:
        return next((e for e in self.entries.values() if e.employee_id == employee_id and e.is_active), None)

    def has_clock_in_for_shift(self, shift_id: int) -> bool:
        return any(e.shift_id == shift_id and e.clock_in is not None for e in self.entries.values())

    def list_for_shifts(self, shift_ids):
        ids = set(shift_ids)
        return [e for e in self.entries.values() if e.shift_id in ids]

    def create_clock_in(self, *, employee_id, shift_id, clock_in, notes=None) -> ClockEntry:
        with self._lock:
            # Same rule as the unique active-entry key.
            if any(e.employee_id == employee_id and e.is_active for e in self.entries.values()):
                raise AlreadyClockedInError("Employee is already clocked in")
            entry = ClockEntry(entry_id=self._next_id, employee_id=employee_id, shift_id=shift_id, clock_in=clock_in, notes=notes)
            self.entries[entry.entry_id] = entry
            self._next_id += 1
            return entry

    def attach_location(self, *, entry_id, clock_out, location) -> bool:
        e = self.entries[entry_id]
        self.entries[entry_id] = replace(e, clock_out_location=location) if clock_out else replace(e, clock_in_location=location)
        return True

    def start_break(self, *, entry_id, at) -> bool:
        with self._lock:
            e = self.entries[entry_id]
            if not e.is_active or e.break_start is not None:
                return False
            self.entries[entry_id] = replace(e, break_start=at)
            return True

    def end_break(self, *, entry_id, at) -> bool:
        with self._lock:
            e = self.entries[entry_id]
            if not e.is_active or not e.on_break:
                return False
            self.entries[entry_id] = replace(e, break_end=at)
            return True

    def close(self, *, entry_id, clock_out, total_hours, overtime_hours) -> bool:
        with self._lock:
            e = self.entries[entry_id]
            if not e.is_active:
                return False
            self.entries[entry_id] = replace(e, clock_out=clock_out, total_hours=total_hours, overtime_hours=overtime_hours)
            return True

    def list_for_employee(self, *, employee_id, limit):
        items = [e for e in self.entries.values() if e.employee_id == employee_id]
        items.sort(key=lambda e: e.entry_id, reverse=True)
        return items[:limit]

    def list_closed_for_company(self, *, company_id, start, end):
        # Single-company fixtures: company filtering happens through the employees fake.
        return [e for e in self.entries.values() if e.clock_out is not None and start <= e.clock_in < end]


class InMemoryCoverageRequests:
    """Coverage requests plus an all-or-nothing ``approve`` over the shifts fake.

    ``fail_after_shift_update`` simulates a crash between the two writes.
    """

    def __init__(self, shifts: InMemoryShifts, *requests: CoverageRequest):
        self._lock = threading.Lock()
        self._shifts = shifts
        self.requests = {r.request_id: r for r in requests}
        self._next_id = max(self.requests, default=0) + 1
        self.fail_after_shift_update = False

    def get(self, request_id: int) -> Optional[CoverageRequest]:
        return self.requests.get(int(request_id))

    def find_pending(self, *, shift_id, replacement_employee_id):
        return next(
            (
                r
                for r in self.requests.values()
                if r.shift_id == shift_id and r.replacement_employee_id == replacement_employee_id and r.is_pending
            ),
            None,
        )

    def create(self, *, shift_id, original_employee_id, replacement_employee_id, company_id, created_at) -> CoverageRequest:
        with self._lock:
            if self.find_pending(shift_id=shift_id, replacement_employee_id=replacement_employee_id):
                raise DuplicateRequestError("A pending request for this shift already exists")
            req = CoverageRequest(
                request_id=self._next_id,
                shift_id=shift_id,
                original_employee_id=original_employee_id,
                replacement_employee_id=replacement_employee_id,
                company_id=company_id,
                status=CoverageStatus.PENDING,
                created_at=created_at,
            )
            self.requests[req.request_id] = req
            self._next_id += 1
            return req

    def list_for_company(self, *, company_id, status=None):
        return [
            r for r in self.requests.values() if r.company_id == company_id and (status is None or r.status == status)
        ]

    def pending_shift_ids(self, *, replacement_employee_id) -> set[int]:
        return {r.shift_id for r in self.requests.values() if r.replacement_employee_id == replacement_employee_id and r.is_pending}

    def approve(self, *, request_id, shift_id, replacement_employee_id, approved_at, reviewed_by, sibling_note) -> bool:
        with self._lock:
            shifts_before = dict(self._shifts.shifts)
            requests_before = dict(self.requests)
            try:
                shift = self._shifts.shifts[shift_id]
                if shift.replacement_approved_at is not None:
                    return False
                self._shifts.shifts[shift_id] = shift.with_changes(
                    replacement_employee_id=replacement_employee_id,
                    replacement_approved_at=approved_at,
                )
                if self.fail_after_shift_update:
                    raise RuntimeError("simulated failure between writes")

                req = self.requests[request_id]
                if not req.is_pending:
                    self._shifts.shifts = shifts_before
                    return False
                self.requests[request_id] = replace(
                    req, status=CoverageStatus.APPROVED, reviewed_at=approved_at, reviewed_by=reviewed_by
                )
                for rid, r in list(self.requests.items()):
                    if rid != request_id and r.shift_id == shift_id and r.is_pending:
                        self.requests[rid] = replace(
                            r,
                            status=CoverageStatus.DENIED,
                            reviewed_at=approved_at,
                            reviewed_by=reviewed_by,
                            reviewer_notes=sibling_note,
                        )
                return True
            except Exception:
                self._shifts.shifts = shifts_before
                self.requests = requests_before
                raise

    def deny(self, *, request_id, reviewed_at, reviewed_by, notes=None) -> bool:
        with self._lock:
            req = self.requests.get(request_id)
            if not req or not req.is_pending:
                return False
            self.requests[request_id] = replace(
                req, status=CoverageStatus.DENIED, reviewed_at=reviewed_at, reviewed_by=reviewed_by, reviewer_notes=notes
            )
            return True


class InMemoryLocationLogs:
    def __init__(self, *, fail: bool = False):
        self.fail = fail
        self.logs: list[LocationLog] = []

    def create(self, *, employee_id, entry_id, label, location, recorded_at) -> int:
        if self.fail:
            raise RuntimeError("location store offline")
        log = LocationLog(
            log_id=len(self.logs) + 1,
            employee_id=employee_id,
            entry_id=entry_id,
            label=label,
            location=location,
            recorded_at=recorded_at,
        )
        self.logs.append(log)
        return log.log_id

    def list_for_employee(self, *, employee_id, limit=50):
        return [log for log in reversed(self.logs) if log.employee_id == employee_id][:limit]
