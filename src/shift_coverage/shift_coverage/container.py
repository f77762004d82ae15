from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.service import AttendanceService
from .core.constants import GRACE_MINUTES, LOCATION_TIMEOUT_SECONDS, OVERTIME_THRESHOLD_HOURS
from .coverage.mysql_coverage_repository import MySQLCoverageRequestRepository
from .coverage.repository import CoverageRequestRepository
from .coverage.service import CoverageService
from .database.connection import DBConfig, DatabaseConnection
from .location.capture import LocationCapture, LocationLogger
from .location.mysql_location_repository import MySQLLocationLogRepository
from .location.repository import LocationLogRepository
from .missed.detector import MissedShiftDetector
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .shifts.repository import ShiftRepository
from .timeclock.calculator.standard_calculator import StandardHoursCalculator
from .timeclock.mysql_clock_repository import MySQLClockEntryRepository
from .timeclock.repository import ClockEntryRepository
from .timeclock.service import ClockService
from .users.mysql_employee_repository import MySQLEmployeeRepository
from .users.repository import EmployeeRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    employees_repo: EmployeeRepository
    shifts_repo: ShiftRepository
    clock_entries_repo: ClockEntryRepository
    coverage_requests_repo: CoverageRequestRepository
    location_logs_repo: LocationLogRepository

    auth_service: AuthService
    clock_service: ClockService
    attendance_service: AttendanceService
    missed_shift_detector: MissedShiftDetector
    coverage_service: CoverageService


def wire_services(
    *,
    employees_repo: EmployeeRepository,
    shifts_repo: ShiftRepository,
    clock_entries_repo: ClockEntryRepository,
    coverage_requests_repo: CoverageRequestRepository,
    location_logs_repo: LocationLogRepository,
    conn: Optional[DatabaseConnection] = None,
    grace_minutes: int = GRACE_MINUTES,
    overtime_threshold_hours: float = OVERTIME_THRESHOLD_HOURS,
    location_timeout_seconds: float = LOCATION_TIMEOUT_SECONDS,
    location_capture: Optional[LocationCapture] = None,
    location_logger: Optional[LocationLogger] = None,
) -> Container:
    """Build the services on top of any repositories that honour the Protocols."""

    auth_service = AuthService(employees_repo)
    clock_service = ClockService(
        clock_entries_repo,
        shifts_repo,
        employees_repo,
        location_capture=location_capture or LocationCapture(timeout_seconds=location_timeout_seconds),
        location_logger=location_logger or LocationLogger(location_logs_repo),
        calculator=StandardHoursCalculator(overtime_threshold_hours=overtime_threshold_hours),
    )
    attendance_service = AttendanceService(shifts_repo, clock_entries_repo, grace_minutes=grace_minutes)
    missed_shift_detector = MissedShiftDetector(shifts_repo, clock_entries_repo, grace_minutes=grace_minutes)
    coverage_service = CoverageService(
        coverage_requests_repo,
        shifts_repo,
        clock_entries_repo,
        employees_repo,
        clock_service,
        grace_minutes=grace_minutes,
    )

    return Container(
        conn=conn,
        employees_repo=employees_repo,
        shifts_repo=shifts_repo,
        clock_entries_repo=clock_entries_repo,
        coverage_requests_repo=coverage_requests_repo,
        location_logs_repo=location_logs_repo,
        auth_service=auth_service,
        clock_service=clock_service,
        attendance_service=attendance_service,
        missed_shift_detector=missed_shift_detector,
        coverage_service=coverage_service,
    )


def build_container(
    *,
    db_config: dict,
    grace_minutes: int = GRACE_MINUTES,
    overtime_threshold_hours: float = OVERTIME_THRESHOLD_HOURS,
    location_timeout_seconds: float = LOCATION_TIMEOUT_SECONDS,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_mapping(db_config))

    return wire_services(
        conn=conn,
        employees_repo=MySQLEmployeeRepository(conn),
        shifts_repo=MySQLShiftRepository(conn),
        clock_entries_repo=MySQLClockEntryRepository(conn),
        coverage_requests_repo=MySQLCoverageRequestRepository(conn),
        location_logs_repo=MySQLLocationLogRepository(conn),
        grace_minutes=grace_minutes,
        overtime_threshold_hours=overtime_threshold_hours,
        location_timeout_seconds=location_timeout_seconds,
    )
