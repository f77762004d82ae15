from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from tests.fakes import (
    ImmediateExecutor,
    InMemoryClockEntries,
    InMemoryCoverageRequests,
    InMemoryEmployees,
    InMemoryLocationLogs,
    InMemoryShifts,
    make_employee,
    make_shift,
)

from src.shift_coverage.shift_coverage.container import wire_services
from src.shift_coverage.shift_coverage.core.enums import Role
from src.shift_coverage.shift_coverage.location.capture import LocationCapture, LocationLogger
from src.shift_coverage.shift_coverage.main import create_app


@pytest.fixture()
def app(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    start = datetime.now(timezone.utc).replace(microsecond=0) - timedelta(hours=3)
    shifts = InMemoryShifts(make_shift(10, employee_id=2, start=start))
    logs = InMemoryLocationLogs()
    container = wire_services(
        employees_repo=InMemoryEmployees(make_employee(1), make_employee(2), make_employee(9, role=Role.MANAGER)),
        shifts_repo=shifts,
        clock_entries_repo=InMemoryClockEntries(),
        coverage_requests_repo=InMemoryCoverageRequests(shifts),
        location_logs_repo=logs,
        location_capture=LocationCapture(executor=ImmediateExecutor()),
        location_logger=LocationLogger(logs, executor=ImmediateExecutor()),
    )
    return create_app(container)


def login(app, employee_id: int):
    client = app.test_client()
    res = client.post("/auth/login", json={"email": f"e{employee_id}@example.com", "password": "secret123"})
    assert res.status_code == 200
    return client


def test_login_failures_are_json(app):
    res = app.test_client().post("/auth/login", json={"email": "e1@example.com", "password": "nope"})
    assert res.status_code == 401
    assert res.get_json() == {"success": False, "error": "authentication_error", "message": "Invalid email or password"}


def test_routes_require_login(app):
    res = app.test_client().get("/time/active")
    assert res.status_code == 401


def test_me_returns_session_employee(app):
    client = login(app, 1)
    assert client.get("/auth/me").get_json()["employee"]["email"] == "e1@example.com"

    client.post("/auth/logout")
    assert client.get("/auth/me").status_code == 401


def test_clock_cycle_with_location_warning(app):
    client = login(app, 1)

    res = client.post("/time/clock-in", json={})
    body = res.get_json()
    assert res.status_code == 201
    assert body["entry"]["is_active"] is True
    assert body["warnings"] and "without location" in body["warnings"][0]

    again = client.post("/time/clock-in", json={"latitude": 1, "longitude": 2})
    assert again.status_code == 409
    assert again.get_json()["error"] == "already_clocked_in"

    assert client.post("/time/break/start").get_json()["applied"] is True
    assert client.post("/time/break/end").get_json()["applied"] is True
    assert client.post("/time/break/end").get_json()["applied"] is False

    out = client.post("/time/clock-out", json={"latitude": 1, "longitude": 2})
    assert out.status_code == 200
    assert out.get_json()["warnings"] == []
    assert out.get_json()["entry"]["clock_out_location"]["latitude"] == 1.0

    missing = client.post("/time/clock-out", json={})
    assert missing.get_json()["error"] == "no_active_entry"
    assert [loc["label"] for loc in client.get("/time/locations").get_json()["locations"]] == ["Clock Out"]
    assert len(client.get("/time/entries").get_json()["entries"]) == 1


def test_my_shifts_marks_no_show_missed(app):
    client = login(app, 2)

    shifts = client.get("/shifts/mine").get_json()["shifts"]

    assert [(s["shift_id"], s["status"], s["is_missed"]) for s in shifts] == [(10, "MISSED", True)]
    assert client.post("/shifts/check-missed").get_json()["marked_any"] is False


def test_manager_only_routes(app):
    employee = login(app, 1)
    assert employee.get("/coverage/requests").status_code == 403
    assert employee.get("/time/hours").status_code == 403

    manager = login(app, 9)
    assert manager.get("/coverage/requests?status=bogus").status_code == 400
    assert manager.get("/time/hours?start=2026-03-01&end=2026-03-07").get_json()["employees"] == []


def test_coverage_flow(app):
    employee = login(app, 1)
    available = employee.get("/coverage/available").get_json()["shifts"]
    assert [(s["shift_id"], s["request_pending"]) for s in available] == [(10, False)]

    created = employee.post("/coverage/requests", json={"shift_id": 10})
    assert created.status_code == 201
    request_id = created.get_json()["request"]["request_id"]
    assert employee.post("/coverage/requests", json={"shift_id": 10}).get_json()["error"] == "duplicate_request"
    assert employee.get("/coverage/available").get_json()["shifts"][0]["action"] == "Request Pending"

    manager = login(app, 9)
    assert [r["request_id"] for r in manager.get("/coverage/requests?status=pending").get_json()["requests"]] == [request_id]
    approved = manager.post(f"/coverage/requests/{request_id}/approve")
    assert approved.get_json()["request"]["status"] == "approved"
    assert manager.post(f"/coverage/requests/{request_id}/deny").status_code == 400

    assert employee.get("/coverage/available").get_json()["shifts"] == []
    assert [s["shift_id"] for s in employee.get("/coverage/mine").get_json()["shifts"]] == [10]

    started = employee.post("/coverage/shifts/10/start", json={"latitude": 3, "longitude": 4})
    assert started.status_code == 201
    assert started.get_json()["entry"]["shift_id"] == 10


def test_unknown_route_is_json_404(app):
    res = app.test_client().get("/nope")
    assert res.status_code == 404
    assert res.get_json()["success"] is False
