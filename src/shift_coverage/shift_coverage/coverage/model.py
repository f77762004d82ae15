from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import CoverageStatus
from ..shifts.model import Shift


@dataclass(frozen=True)
class CoverageRequest:
    """An employee's request to cover someone else's missed shift.

    Immutable once it leaves ``pending``.
    """

    request_id: int
    shift_id: int
    original_employee_id: int
    replacement_employee_id: int
    company_id: int
    status: CoverageStatus
    created_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    reviewer_notes: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == CoverageStatus.PENDING


@dataclass(frozen=True)
class AvailableShift:
    """Row of the "available to cover" read model."""

    shift: Shift
    request_pending: bool = False

    @property
    def label(self) -> str:
        return "Request Pending" if self.request_pending else "Request to Cover"
