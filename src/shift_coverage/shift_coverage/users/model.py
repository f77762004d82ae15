from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Employee:
    """Domain entity: an employee (plain data, no DB access)."""

    employee_id: int
    full_name: str
    email: str
    password_hash: str
    role: Role
    company_id: int
    department_id: Optional[int] = None
    hourly_rate: Optional[float] = None
    is_active: bool = True
