from __future__ import annotations

from typing import Optional

from flask import Flask

from ..common.datetime_utils import format_utc
from ..common.validators import optional_note, optional_positive_id
from ..common.web import (
    current_company_id,
    current_employee_id,
    date_range_arg,
    int_arg,
    json_ok,
    login_required,
    manager_required,
    payload,
)
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_REPORT_DAYS
from ..core.exceptions import NoActiveEntryError
from ..location.capture import ReportedPosition
from .model import ClockEntry


def entry_to_dict(e: Optional[ClockEntry]) -> Optional[dict]:
    if e is None:
        return None
    return {
        "entry_id": e.entry_id,
        "employee_id": e.employee_id,
        "shift_id": e.shift_id,
        "clock_in": format_utc(e.clock_in),
        "clock_out": format_utc(e.clock_out),
        "break_start": format_utc(e.break_start),
        "break_end": format_utc(e.break_end),
        "total_hours": e.total_hours,
        "overtime_hours": e.overtime_hours,
        "clock_in_location": e.clock_in_location.as_dict() if e.clock_in_location else None,
        "clock_out_location": e.clock_out_location.as_dict() if e.clock_out_location else None,
        "notes": e.notes or "",
        "is_active": e.is_active,
        "on_break": e.on_break,
    }


def register(app: Flask, container: Container) -> None:
    def _entry_id(body: dict) -> Optional[int]:
        # Without an explicit id the caller means its own active entry.
        entry_id = optional_positive_id(body.get("entry_id"), "entry_id")
        if entry_id is not None:
            return entry_id
        active = container.clock_service.get_active_entry(current_employee_id())
        return active.entry_id if active else None

    @app.route("/time/clock-in", methods=["POST"], endpoint="clock_in")
    @login_required
    def clock_in():
        body = payload()
        result = container.clock_service.clock_in(
            current_employee_id(),
            optional_positive_id(body.get("shift_id"), "shift_id"),
            position=ReportedPosition.from_payload(body),
            notes=optional_note(body.get("notes")),
        )
        return json_ok(201, entry=entry_to_dict(result.entry), warnings=list(result.warnings))

    @app.route("/time/clock-out", methods=["POST"], endpoint="clock_out")
    @login_required
    def clock_out():
        body = payload()
        entry_id = _entry_id(body)
        if entry_id is None:
            raise NoActiveEntryError("No active clock entry")
        result = container.clock_service.clock_out(
            entry_id,
            employee_id=current_employee_id(),
            position=ReportedPosition.from_payload(body),
        )
        return json_ok(entry=entry_to_dict(result.entry), warnings=list(result.warnings))

    @app.route("/time/break/start", methods=["POST"], endpoint="break_start")
    @login_required
    def break_start():
        entry_id = _entry_id(payload())
        applied = entry_id is not None and container.clock_service.start_break(entry_id, employee_id=current_employee_id())
        return json_ok(applied=applied)

    @app.route("/time/break/end", methods=["POST"], endpoint="break_end")
    @login_required
    def break_end():
        entry_id = _entry_id(payload())
        applied = entry_id is not None and container.clock_service.end_break(entry_id, employee_id=current_employee_id())
        return json_ok(applied=applied)

    @app.route("/time/active", endpoint="active_entry")
    @login_required
    def active_entry():
        return json_ok(entry=entry_to_dict(container.clock_service.get_active_entry(current_employee_id())))

    @app.route("/time/entries", endpoint="entries")
    @login_required
    def entries():
        items = container.clock_service.list_entries(
            current_employee_id(),
            limit=int_arg("limit", DEFAULT_HISTORY_LIMIT, maximum=500),
        )
        return json_ok(
            entries=[entry_to_dict(e) for e in items],
            total_hours=container.clock_service.period_hours(items),
        )

    @app.route("/time/locations", endpoint="locations")
    @login_required
    def locations():
        logs = container.location_logs_repo.list_for_employee(
            employee_id=current_employee_id(),
            limit=int_arg("limit", DEFAULT_HISTORY_LIMIT, maximum=500),
        )
        return json_ok(
            locations=[
                {
                    "log_id": log.log_id,
                    "entry_id": log.entry_id,
                    "label": log.label,
                    "recorded_at": format_utc(log.recorded_at),
                    **log.location.as_dict(),
                }
                for log in logs
            ]
        )

    @app.route("/time/hours", endpoint="hours_report")
    @manager_required
    def hours_report():
        start, end = date_range_arg(default_days=DEFAULT_REPORT_DAYS)
        rows = container.clock_service.hours_by_employee(company_id=current_company_id(), start=start, end=end)
        return json_ok(
            start=format_utc(start),
            end=format_utc(end),
            employees=[
                {
                    "employee_id": r.employee_id,
                    "full_name": r.full_name,
                    "total_hours": r.total_hours,
                    "overtime_hours": r.overtime_hours,
                    "entries": r.entries,
                }
                for r in rows
            ],
        )
