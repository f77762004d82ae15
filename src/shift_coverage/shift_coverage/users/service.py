from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash

from ..common.validators import require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, NotFoundError
from .model import Employee
from .repository import EmployeeRepository


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    employee_id: int
    full_name: str
    role: Role
    company_id: int
    department_id: Optional[int]


class AuthService:
    """Use case: authenticate an employee (login)."""

    def __init__(self, employees: EmployeeRepository):
        self._employees = employees

    def authenticate(self, email: str, password: str) -> SessionUser:
        email = require_non_empty(email, "Email").lower()
        employee = self._employees.get_by_email(email)
        if not employee or not employee.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(employee.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        return SessionUser(
            employee_id=employee.employee_id,
            full_name=employee.full_name,
            role=employee.role,
            company_id=employee.company_id,
            department_id=employee.department_id,
        )

    def require_employee(self, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(int(employee_id))
        if not employee or not employee.is_active:
            raise NotFoundError("Employee not found")
        return employee
