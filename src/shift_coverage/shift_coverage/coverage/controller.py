from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import format_utc
from ..common.validators import optional_note, require_positive_id
from ..common.web import current_company_id, current_employee_id, json_ok, login_required, manager_required, payload
from ..container import Container
from ..core.enums import CoverageStatus
from ..core.exceptions import ValidationError
from ..location.capture import ReportedPosition
from ..shifts.model import Shift
from ..timeclock.controller import entry_to_dict
from .model import CoverageRequest


def shift_to_dict(s: Shift) -> dict:
    return {
        "shift_id": s.shift_id,
        "employee_id": s.employee_id,
        "company_id": s.company_id,
        "department_id": s.department_id,
        "start_time": format_utc(s.start_time),
        "end_time": format_utc(s.end_time),
        "status": s.status.value,
        "is_missed": s.is_missed,
        "missed_at": format_utc(s.missed_at),
        "replacement_employee_id": s.replacement_employee_id,
        "replacement_approved_at": format_utc(s.replacement_approved_at),
        "replacement_started_at": format_utc(s.replacement_started_at),
        "notes": s.notes or "",
    }


def request_to_dict(r: CoverageRequest) -> dict:
    return {
        "request_id": r.request_id,
        "shift_id": r.shift_id,
        "original_employee_id": r.original_employee_id,
        "replacement_employee_id": r.replacement_employee_id,
        "company_id": r.company_id,
        "status": r.status.value,
        "created_at": format_utc(r.created_at),
        "reviewed_at": format_utc(r.reviewed_at),
        "reviewed_by": r.reviewed_by,
        "reviewer_notes": r.reviewer_notes or "",
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/coverage/available", endpoint="coverage_available")
    @login_required
    def available():
        rows = container.coverage_service.list_available(current_employee_id())
        return json_ok(
            shifts=[
                {**shift_to_dict(a.shift), "request_pending": a.request_pending, "action": a.label}
                for a in rows
            ]
        )

    @app.route("/coverage/mine", endpoint="coverage_mine")
    @login_required
    def mine():
        shifts = container.coverage_service.list_my_approved(current_employee_id())
        return json_ok(shifts=[shift_to_dict(s) for s in shifts])

    @app.route("/coverage/requests", methods=["POST"], endpoint="coverage_request_create")
    @login_required
    def create_request():
        body = payload()
        req = container.coverage_service.request_coverage(
            require_positive_id(body.get("shift_id"), "shift_id"),
            current_employee_id(),
        )
        return json_ok(201, request=request_to_dict(req))

    @app.route("/coverage/requests", methods=["GET"], endpoint="coverage_request_list")
    @manager_required
    def list_requests():
        raw = (request.args.get("status") or "").strip().lower()
        try:
            status = CoverageStatus(raw) if raw else None
        except ValueError:
            raise ValidationError("Unknown request status")
        reqs = container.coverage_service.list_requests(current_company_id(), status=status)
        return json_ok(requests=[request_to_dict(r) for r in reqs])

    @app.route("/coverage/requests/<int:request_id>/approve", methods=["POST"], endpoint="coverage_request_approve")
    @manager_required
    def approve(request_id: int):
        req = container.coverage_service.approve_request(request_id, reviewer_id=current_employee_id())
        return json_ok(request=request_to_dict(req))

    @app.route("/coverage/requests/<int:request_id>/deny", methods=["POST"], endpoint="coverage_request_deny")
    @manager_required
    def deny(request_id: int):
        req = container.coverage_service.deny_request(
            request_id,
            reviewer_id=current_employee_id(),
            notes=optional_note(payload().get("notes")),
        )
        return json_ok(request=request_to_dict(req))

    @app.route("/coverage/shifts/<int:shift_id>/start", methods=["POST"], endpoint="coverage_shift_start")
    @login_required
    def start_shift(shift_id: int):
        result = container.coverage_service.start_replacement_shift(
            shift_id,
            current_employee_id(),
            position=ReportedPosition.from_payload(payload()),
        )
        return json_ok(201, entry=entry_to_dict(result.entry), warnings=list(result.warnings))

    @app.route("/coverage/missed", endpoint="coverage_missed")
    @manager_required
    def company_missed():
        shifts = container.coverage_service.list_company_missed(current_company_id())
        return json_ok(shifts=[shift_to_dict(s) for s in shifts])
