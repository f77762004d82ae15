from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from functools import wraps
from typing import Any, Optional

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import (
    AlreadyClockedInError,
    AuthenticationError,
    DomainError,
    DuplicateRequestError,
    LocationUnavailableError,
    NoActiveEntryError,
    NotFoundError,
    PermissionDeniedError,
    StoreUnavailableError,
    ValidationError,
)
from .datetime_utils import parse_iso_date

logger = logging.getLogger(__name__)

HTTP_STATUS = {
    ValidationError: 400,
    AuthenticationError: 401,
    PermissionDeniedError: 403,
    NotFoundError: 404,
    AlreadyClockedInError: 409,
    NoActiveEntryError: 409,
    DuplicateRequestError: 409,
    LocationUnavailableError: 422,
    StoreUnavailableError: 503,
}


def status_for(error: DomainError) -> int:
    for cls in type(error).__mro__:
        if cls in HTTP_STATUS:
            return HTTP_STATUS[cls]
    return 400


def json_ok(status: int = 200, **data: Any):
    return jsonify({"success": True, **data}), status


def json_error(status: int, kind: str, message: str):
    return jsonify({"success": False, "error": kind, "message": message}), status


def payload() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def current_employee_id() -> int:
    return int(session["employee_id"])


def current_company_id() -> int:
    return int(session["company_id"])


def current_role() -> Role:
    return Role(session.get("role", Role.EMPLOYEE.value))


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "employee_id" not in session:
            return json_error(401, AuthenticationError.kind, "Please log in to continue")
        return view(*args, **kwargs)

    return wrapper


def manager_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "employee_id" not in session:
            return json_error(401, AuthenticationError.kind, "Please log in to continue")
        if not current_role().can_manage:
            return json_error(403, PermissionDeniedError.kind, "Manager access required")
        return view(*args, **kwargs)

    return wrapper


def date_range_arg(*, default_days: int) -> tuple[datetime, datetime]:
    """``?start=YYYY-MM-DD&end=YYYY-MM-DD`` as a half-open UTC range.

    ``end`` is inclusive on the calendar, so the range runs to the next midnight.
    """

    try:
        end_day: date = parse_iso_date(request.args["end"]) if request.args.get("end") else datetime.now(timezone.utc).date()
        start_day: date = (
            parse_iso_date(request.args["start"])
            if request.args.get("start")
            else end_day - timedelta(days=default_days - 1)
        )
    except ValueError:
        raise ValidationError("Dates must be YYYY-MM-DD")
    if start_day > end_day:
        raise ValidationError("start must not be after end")

    start = datetime.combine(start_day, time.min, tzinfo=timezone.utc)
    end = datetime.combine(end_day + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return start, end


def int_arg(name: str, default: int, *, maximum: Optional[int] = None) -> int:
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")
    if value <= 0:
        raise ValidationError(f"{name} must be positive")
    return min(value, maximum) if maximum else value


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        status = status_for(e)
        if status >= 500:
            logger.warning("%s on %s %s: %s", e.kind, request.method, request.path, e)
        return json_error(status, e.kind, str(e))

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return json_error(e.code or 500, "http_error", e.description or e.name)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        if app.config.get("DEBUG"):
            return json_error(500, "internal_error", f"System error: {e}")
        return json_error(500, "internal_error", "System error")
