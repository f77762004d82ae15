from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

import mysql.connector

from ..common.datetime_utils import as_utc, to_db
from ..core.enums import CoverageStatus
from ..core.exceptions import DuplicateRequestError, StoreUnavailableError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import CoverageRequest
from .repository import CoverageRequestRepository

logger = logging.getLogger(__name__)

PENDING_REQUEST_KEY = "uq_coverage_requests_pending"

_COLUMNS = """
    request_id, shift_id, original_employee_id, replacement_employee_id, company_id,
    status, created_at, reviewed_at, reviewed_by, reviewer_notes
"""


class _GuardFailed(Exception):
    """A conditional update inside the approval matched no row."""


def row_to_request(r: dict) -> CoverageRequest:
    return CoverageRequest(
        request_id=int(r["request_id"]),
        shift_id=int(r["shift_id"]),
        original_employee_id=int(r["original_employee_id"]),
        replacement_employee_id=int(r["replacement_employee_id"]),
        company_id=int(r["company_id"]),
        status=CoverageStatus(r["status"]),
        created_at=as_utc(r["created_at"]),
        reviewed_at=as_utc(r.get("reviewed_at")),
        reviewed_by=int(r["reviewed_by"]) if r.get("reviewed_by") is not None else None,
        reviewer_notes=r.get("reviewer_notes"),
    )


class MySQLCoverageRequestRepository(CoverageRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, request_id: int) -> Optional[CoverageRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM coverage_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return row_to_request(r) if r else None

    def find_pending(self, *, shift_id: int, replacement_employee_id: int) -> Optional[CoverageRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM coverage_requests
                WHERE shift_id=%s AND replacement_employee_id=%s AND status=%s
                LIMIT 1
                """,
                (int(shift_id), int(replacement_employee_id), CoverageStatus.PENDING.value),
            )
            r = fetchone(cur)
            return row_to_request(r) if r else None

    def create(
        self,
        *,
        shift_id: int,
        original_employee_id: int,
        replacement_employee_id: int,
        company_id: int,
        created_at: datetime,
    ) -> CoverageRequest:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO coverage_requests
                        (shift_id, original_employee_id, replacement_employee_id, company_id, status, created_at)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    """,
                    (
                        int(shift_id),
                        int(original_employee_id),
                        int(replacement_employee_id),
                        int(company_id),
                        CoverageStatus.PENDING.value,
                        to_db(created_at),
                    ),
                )
                request_id = int(cur.lastrowid)
        except mysql.connector.IntegrityError as e:
            if is_duplicate_key(e, PENDING_REQUEST_KEY):
                raise DuplicateRequestError("A pending request for this shift already exists") from e
            raise StoreUnavailableError(str(e)) from e

        return CoverageRequest(
            request_id=request_id,
            shift_id=int(shift_id),
            original_employee_id=int(original_employee_id),
            replacement_employee_id=int(replacement_employee_id),
            company_id=int(company_id),
            status=CoverageStatus.PENDING,
            created_at=as_utc(created_at),
        )

    def list_for_company(self, *, company_id: int, status: Optional[CoverageStatus] = None) -> Sequence[CoverageRequest]:
        sql = f"SELECT {_COLUMNS} FROM coverage_requests WHERE company_id=%s"
        params: list[object] = [int(company_id)]
        if status is not None:
            sql += " AND status=%s"
            params.append(CoverageStatus(status).value)
        sql += " ORDER BY created_at DESC, request_id DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [row_to_request(r) for r in fetchall(cur)]

    def pending_shift_ids(self, *, replacement_employee_id: int) -> set[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT shift_id FROM coverage_requests WHERE replacement_employee_id=%s AND status=%s",
                (int(replacement_employee_id), CoverageStatus.PENDING.value),
            )
            return {int(r["shift_id"]) for r in fetchall(cur)}

    def approve(
        self,
        *,
        request_id: int,
        shift_id: int,
        replacement_employee_id: int,
        approved_at: datetime,
        reviewed_by: int,
        sibling_note: str,
    ) -> bool:
        at = to_db(approved_at)
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE shifts
                    SET replacement_employee_id=%s, replacement_approved_at=%s
                    WHERE shift_id=%s AND replacement_approved_at IS NULL
                    """,
                    (int(replacement_employee_id), at, int(shift_id)),
                )
                if cur.rowcount != 1:
                    raise _GuardFailed("shift already reassigned")

                cur.execute(
                    """
                    UPDATE coverage_requests
                    SET status=%s, reviewed_at=%s, reviewed_by=%s
                    WHERE request_id=%s AND shift_id=%s AND status=%s
                    """,
                    (
                        CoverageStatus.APPROVED.value,
                        at,
                        int(reviewed_by),
                        int(request_id),
                        int(shift_id),
                        CoverageStatus.PENDING.value,
                    ),
                )
                if cur.rowcount != 1:
                    raise _GuardFailed("request no longer pending")

                cur.execute(
                    """
                    UPDATE coverage_requests
                    SET status=%s, reviewed_at=%s, reviewed_by=%s, reviewer_notes=%s
                    WHERE shift_id=%s AND status=%s AND request_id<>%s
                    """,
                    (
                        CoverageStatus.DENIED.value,
                        at,
                        int(reviewed_by),
                        sibling_note,
                        int(shift_id),
                        CoverageStatus.PENDING.value,
                        int(request_id),
                    ),
                )
                if cur.rowcount:
                    logger.info("Denied %s sibling request(s) for shift %s", cur.rowcount, shift_id)
        except _GuardFailed as e:
            logger.info("Approval of request %s not applied: %s", request_id, e)
            return False
        return True

    def deny(self, *, request_id: int, reviewed_at: datetime, reviewed_by: int, notes: Optional[str] = None) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE coverage_requests
                SET status=%s, reviewed_at=%s, reviewed_by=%s, reviewer_notes=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    CoverageStatus.DENIED.value,
                    to_db(reviewed_at),
                    int(reviewed_by),
                    notes,
                    int(request_id),
                    CoverageStatus.PENDING.value,
                ),
            )
            return cur.rowcount == 1
