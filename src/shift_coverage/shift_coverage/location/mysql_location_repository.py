from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import as_utc, to_db
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import Location, LocationLog
from .repository import LocationLogRepository


class MySQLLocationLogRepository(LocationLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        employee_id: int,
        entry_id: Optional[int],
        label: str,
        location: Location,
        recorded_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO location_logs(employee_id, entry_id, label, latitude, longitude, accuracy, recorded_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    entry_id,
                    label,
                    location.latitude,
                    location.longitude,
                    location.accuracy,
                    to_db(recorded_at),
                ),
            )
            return int(cur.lastrowid)

    def list_for_employee(self, *, employee_id: int, limit: int = 50) -> Sequence[LocationLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT log_id, employee_id, entry_id, label, latitude, longitude, accuracy, recorded_at
                FROM location_logs
                WHERE employee_id=%s
                ORDER BY recorded_at DESC
                LIMIT %s
                """,
                (int(employee_id), int(limit)),
            )
            return [
                LocationLog(
                    log_id=int(r["log_id"]),
                    employee_id=int(r["employee_id"]),
                    entry_id=int(r["entry_id"]) if r.get("entry_id") is not None else None,
                    label=r["label"],
                    location=Location(
                        latitude=float(r["latitude"]),
                        longitude=float(r["longitude"]),
                        accuracy=float(r["accuracy"]) if r.get("accuracy") is not None else None,
                    ),
                    recorded_at=as_utc(r["recorded_at"]),
                )
                for r in fetchall(cur)
            ]
