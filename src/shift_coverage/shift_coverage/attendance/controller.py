from __future__ import annotations

import logging

from flask import Flask

from ..common.web import current_company_id, current_employee_id, current_role, json_ok, login_required
from ..container import Container
from ..core.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/shifts/mine", endpoint="my_shifts")
    @login_required
    def my_shifts():
        employee_id = current_employee_id()
        # Opportunistic reconciliation before rendering; the projector covers
        # anything the scan could not persist.
        try:
            container.missed_shift_detector.check_and_mark(employee_id=employee_id)
        except StoreUnavailableError as e:
            logger.warning("Missed-shift scan skipped for employee %s: %s", employee_id, e)

        views = container.attendance_service.my_schedule(employee_id)
        return json_ok(shifts=[container.attendance_service.to_ui(v) for v in views])

    @app.route("/shifts/check-missed", methods=["POST"], endpoint="check_missed")
    @login_required
    def check_missed():
        if current_role().can_manage:
            run = container.missed_shift_detector.scan(company_id=current_company_id())
        else:
            run = container.missed_shift_detector.scan(employee_id=current_employee_id())
        return json_ok(
            marked_any=run.marked_any,
            marked=list(run.marked),
            candidates=run.candidates,
        )
