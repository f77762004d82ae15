from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import as_utc, to_db
from ..core.enums import ShiftStatus, WriteOutcome
from ..core.exceptions import PermissionDeniedError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Shift
from .repository import ShiftRepository

logger = logging.getLogger(__name__)

_COLUMNS = """
    shift_id, employee_id, company_id, department_id, start_time, end_time,
    status, is_missed, missed_at, replacement_employee_id, replacement_approved_at,
    replacement_started_at, break_minutes, hourly_rate, notes, created_at
"""


def _opt_int(value) -> Optional[int]:
    return int(value) if value is not None else None


def row_to_shift(r: dict) -> Shift:
    return Shift(
        shift_id=int(r["shift_id"]),
        employee_id=int(r["employee_id"]),
        company_id=int(r["company_id"]),
        department_id=_opt_int(r.get("department_id")),
        start_time=as_utc(r["start_time"]),
        end_time=as_utc(r["end_time"]),
        status=ShiftStatus(r["status"]),
        is_missed=bool(r.get("is_missed")),
        missed_at=as_utc(r.get("missed_at")),
        replacement_employee_id=_opt_int(r.get("replacement_employee_id")),
        replacement_approved_at=as_utc(r.get("replacement_approved_at")),
        replacement_started_at=as_utc(r.get("replacement_started_at")),
        break_minutes=_opt_int(r.get("break_minutes")),
        hourly_rate=float(r["hourly_rate"]) if r.get("hourly_rate") is not None else None,
        notes=r.get("notes"),
        created_at=as_utc(r.get("created_at")),
    )


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM shifts WHERE shift_id=%s", (int(shift_id),))
            r = fetchone(cur)
            return row_to_shift(r) if r else None

    def list_overdue_scheduled(
        self,
        *,
        grace_deadline: datetime,
        employee_id: Optional[int] = None,
        company_id: Optional[int] = None,
    ) -> Sequence[Shift]:
        clauses = ["status=%s", "is_missed=0", "start_time < %s", "created_at <= start_time"]
        params: list[object] = [ShiftStatus.SCHEDULED.value, to_db(grace_deadline)]

        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))
        if company_id is not None:
            clauses.append("company_id=%s")
            params.append(int(company_id))

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM shifts WHERE {where} ORDER BY start_time", tuple(params))
            return [row_to_shift(r) for r in fetchall(cur)]

    def mark_missed(self, *, shift_id: int, missed_at: datetime) -> WriteOutcome:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE shifts
                    SET is_missed=1, missed_at=%s, status=%s
                    WHERE shift_id=%s AND status=%s AND is_missed=0
                      AND NOT EXISTS (
                          SELECT 1 FROM clock_entries ce
                          WHERE ce.shift_id=shifts.shift_id AND ce.clock_in IS NOT NULL
                      )
                    """,
                    (to_db(missed_at), ShiftStatus.MISSED.value, int(shift_id), ShiftStatus.SCHEDULED.value),
                )
                return WriteOutcome.APPLIED if cur.rowcount == 1 else WriteOutcome.CONFLICT
        except PermissionDeniedError as e:
            logger.debug("mark_missed(%s) denied by store: %s", shift_id, e)
            return WriteOutcome.DENIED

    def list_for_employee(self, *, employee_id: int, start: datetime, end: datetime) -> Sequence[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM shifts
                WHERE employee_id=%s AND start_time >= %s AND start_time < %s
                ORDER BY start_time
                """,
                (int(employee_id), to_db(start), to_db(end)),
            )
            return [row_to_shift(r) for r in fetchall(cur)]

    def list_coverage_candidates(self, *, company_id: int, grace_deadline: datetime) -> Sequence[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM shifts
                WHERE company_id=%s
                  AND replacement_approved_at IS NULL
                  AND (is_missed=1 OR status=%s OR (status=%s AND start_time < %s AND created_at <= start_time))
                ORDER BY start_time DESC
                """,
                (
                    int(company_id),
                    ShiftStatus.MISSED.value,
                    ShiftStatus.SCHEDULED.value,
                    to_db(grace_deadline),
                ),
            )
            return [row_to_shift(r) for r in fetchall(cur)]

    def list_missed_for_company(self, *, company_id: int) -> Sequence[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM shifts
                WHERE company_id=%s AND is_missed=1
                ORDER BY missed_at DESC
                """,
                (int(company_id),),
            )
            return [row_to_shift(r) for r in fetchall(cur)]

    def list_approved_replacements(self, *, employee_id: int) -> Sequence[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM shifts
                WHERE replacement_employee_id=%s AND replacement_approved_at IS NOT NULL
                ORDER BY start_time DESC
                """,
                (int(employee_id),),
            )
            return [row_to_shift(r) for r in fetchall(cur)]

    def mark_replacement_started(self, *, shift_id: int, employee_id: int, started_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE shifts
                SET replacement_started_at=%s
                WHERE shift_id=%s AND replacement_employee_id=%s
                  AND replacement_approved_at IS NOT NULL AND replacement_started_at IS NULL
                """,
                (to_db(started_at), int(shift_id), int(employee_id)),
            )
            return cur.rowcount == 1
