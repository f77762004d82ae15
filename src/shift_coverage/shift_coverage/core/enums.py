from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles used at the permission boundary."""

    EMPLOYEE = "employee"
    MANAGER = "manager"
    ADMIN = "admin"

    @property
    def can_manage(self) -> bool:
        return self in {Role.MANAGER, Role.ADMIN}


class ShiftStatus(str, Enum):
    """Persisted shift status. IN_PROGRESS is only ever derived for display."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    MISSED = "missed"


class AttendanceStatus(str, Enum):
    """Display status produced by the attendance projector."""

    MISSED = "MISSED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    ON_BREAK = "ON_BREAK"
    LATE = "LATE"
    STARTED = "STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    PAST = "PAST"
    TODAY = "TODAY"
    TOMORROW = "TOMORROW"
    UPCOMING = "UPCOMING"


class CoverageStatus(str, Enum):
    """Coverage request workflow. APPROVED and DENIED are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class WriteOutcome(str, Enum):
    """Tagged result of a conditional store write.

    APPLIED: the row transitioned.
    CONFLICT: the guard no longer matched (someone else got there first).
    DENIED: the store refused the write for this actor (recoverable).
    """

    APPLIED = "applied"
    CONFLICT = "conflict"
    DENIED = "denied"
