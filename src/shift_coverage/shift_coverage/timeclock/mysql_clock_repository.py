from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

import mysql.connector

from ..common.datetime_utils import as_utc, to_db
from ..core.exceptions import AlreadyClockedInError, StoreUnavailableError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from ..location.model import Location
from .model import ClockEntry
from .repository import ClockEntryRepository

ACTIVE_ENTRY_KEY = "uq_clock_entries_active_employee"

_COLUMNS = """
    entry_id, employee_id, shift_id, clock_in, clock_out, break_start, break_end,
    total_hours, overtime_hours, clock_in_lat, clock_in_lng, clock_out_lat, clock_out_lng, notes
"""


def _location(lat, lng) -> Optional[Location]:
    if lat is None or lng is None:
        return None
    return Location(latitude=float(lat), longitude=float(lng))


def row_to_entry(r: dict) -> ClockEntry:
    return ClockEntry(
        entry_id=int(r["entry_id"]),
        employee_id=int(r["employee_id"]),
        shift_id=int(r["shift_id"]) if r.get("shift_id") is not None else None,
        clock_in=as_utc(r.get("clock_in")),
        clock_out=as_utc(r.get("clock_out")),
        break_start=as_utc(r.get("break_start")),
        break_end=as_utc(r.get("break_end")),
        total_hours=float(r["total_hours"]) if r.get("total_hours") is not None else None,
        overtime_hours=float(r["overtime_hours"]) if r.get("overtime_hours") is not None else None,
        clock_in_location=_location(r.get("clock_in_lat"), r.get("clock_in_lng")),
        clock_out_location=_location(r.get("clock_out_lat"), r.get("clock_out_lng")),
        notes=r.get("notes"),
    )


class MySQLClockEntryRepository(ClockEntryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, entry_id: int) -> Optional[ClockEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM clock_entries WHERE entry_id=%s", (int(entry_id),))
            r = fetchone(cur)
            return row_to_entry(r) if r else None

    def get_active_for_employee(self, employee_id: int) -> Optional[ClockEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM clock_entries
                WHERE employee_id=%s AND clock_in IS NOT NULL AND clock_out IS NULL
                ORDER BY clock_in DESC
                LIMIT 1
                """,
                (int(employee_id),),
            )
            r = fetchone(cur)
            return row_to_entry(r) if r else None

    def has_clock_in_for_shift(self, shift_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS found FROM clock_entries WHERE shift_id=%s AND clock_in IS NOT NULL LIMIT 1",
                (int(shift_id),),
            )
            return fetchone(cur) is not None

    def list_for_shifts(self, shift_ids: Sequence[int]) -> Sequence[ClockEntry]:
        ids = [int(i) for i in shift_ids]
        if not ids:
            return []
        placeholders = ",".join(["%s"] * len(ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM clock_entries
                WHERE shift_id IN ({placeholders})
                ORDER BY clock_in
                """,
                tuple(ids),
            )
            return [row_to_entry(r) for r in fetchall(cur)]

    def create_clock_in(
        self,
        *,
        employee_id: int,
        shift_id: Optional[int],
        clock_in: datetime,
        notes: Optional[str] = None,
    ) -> ClockEntry:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO clock_entries(employee_id, shift_id, clock_in, notes)
                    VALUES(%s,%s,%s,%s)
                    """,
                    (int(employee_id), shift_id, to_db(clock_in), notes),
                )
                entry_id = int(cur.lastrowid)
        except mysql.connector.IntegrityError as e:
            if is_duplicate_key(e, ACTIVE_ENTRY_KEY):
                raise AlreadyClockedInError("Employee is already clocked in") from e
            raise StoreUnavailableError(str(e)) from e

        return ClockEntry(
            entry_id=entry_id,
            employee_id=int(employee_id),
            shift_id=shift_id,
            clock_in=clock_in,
            notes=notes,
        )

    def attach_location(self, *, entry_id: int, clock_out: bool, location: Location) -> bool:
        prefix = "clock_out" if clock_out else "clock_in"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE clock_entries SET {prefix}_lat=%s, {prefix}_lng=%s WHERE entry_id=%s",
                (location.latitude, location.longitude, int(entry_id)),
            )
            return cur.rowcount == 1

    def start_break(self, *, entry_id: int, at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE clock_entries SET break_start=%s
                WHERE entry_id=%s AND clock_out IS NULL AND break_start IS NULL
                """,
                (to_db(at), int(entry_id)),
            )
            return cur.rowcount == 1

    def end_break(self, *, entry_id: int, at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE clock_entries SET break_end=%s
                WHERE entry_id=%s AND clock_out IS NULL AND break_start IS NOT NULL AND break_end IS NULL
                """,
                (to_db(at), int(entry_id)),
            )
            return cur.rowcount == 1

    def close(
        self,
        *,
        entry_id: int,
        clock_out: datetime,
        total_hours: float,
        overtime_hours: float,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE clock_entries
                SET clock_out=%s, total_hours=%s, overtime_hours=%s
                WHERE entry_id=%s AND clock_in IS NOT NULL AND clock_out IS NULL
                """,
                (to_db(clock_out), total_hours, overtime_hours, int(entry_id)),
            )
            return cur.rowcount == 1

    def list_for_employee(self, *, employee_id: int, limit: int) -> Sequence[ClockEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM clock_entries
                WHERE employee_id=%s
                ORDER BY created_at DESC, entry_id DESC
                LIMIT %s
                """,
                (int(employee_id), int(limit)),
            )
            return [row_to_entry(r) for r in fetchall(cur)]

    def list_closed_for_company(self, *, company_id: int, start: datetime, end: datetime) -> Sequence[ClockEntry]:
        columns = ", ".join(f"c.{c.strip()}" for c in _COLUMNS.split(","))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {columns}
                FROM clock_entries c
                JOIN employees e ON e.employee_id = c.employee_id
                WHERE e.company_id=%s AND c.clock_out IS NOT NULL
                  AND c.clock_in >= %s AND c.clock_in < %s
                ORDER BY c.clock_in
                """,
                (int(company_id), to_db(start), to_db(end)),
            )
            return [row_to_entry(r) for r in fetchall(cur)]
