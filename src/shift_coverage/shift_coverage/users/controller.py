from __future__ import annotations

from datetime import timedelta

from flask import Flask, session

from ..common.web import json_ok, login_required, payload
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/auth/login", methods=["POST"], endpoint="login")
    def login():
        body = payload()
        s_user = container.auth_service.authenticate(body.get("email", ""), body.get("password", ""))

        session.clear()
        session.permanent = bool(body.get("remember_me"))
        app.permanent_session_lifetime = timedelta(days=7)

        session["employee_id"] = s_user.employee_id
        session["name"] = s_user.full_name
        session["role"] = s_user.role.value
        session["company_id"] = s_user.company_id
        session["department_id"] = s_user.department_id

        return json_ok(
            employee={
                "employee_id": s_user.employee_id,
                "full_name": s_user.full_name,
                "role": s_user.role.value,
                "company_id": s_user.company_id,
            }
        )

    @app.route("/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return json_ok()

    @app.route("/auth/me", endpoint="me")
    @login_required
    def me():
        employee = container.auth_service.require_employee(int(session["employee_id"]))
        return json_ok(
            employee={
                "employee_id": employee.employee_id,
                "full_name": employee.full_name,
                "email": employee.email,
                "role": employee.role.value,
                "company_id": employee.company_id,
                "department_id": employee.department_id,
            }
        )
