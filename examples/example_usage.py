"""Example: drive the service layer directly (no Flask).

Clocks the demo employee in and out and prints the projected schedule.
Run ``python scripts/init_db.py --demo`` first.
"""

import importlib

from config import get_settings_module

from src.shift_coverage.shift_coverage.container import build_container
from src.shift_coverage.shift_coverage.location.capture import ReportedPosition


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    employee = container.employees_repo.get_by_email("avery@example.com")
    result = container.clock_service.clock_in(employee.employee_id, position=ReportedPosition(40.7128, -74.0060))
    print("clocked in:", result.entry, result.warnings)

    result = container.clock_service.clock_out(result.entry.entry_id, employee_id=employee.employee_id)
    print("clocked out:", result.entry.total_hours, "h", result.warnings)

    for view in container.attendance_service.my_schedule(employee.employee_id):
        print(container.attendance_service.to_ui(view))


if __name__ == "__main__":
    main()
