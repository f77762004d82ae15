from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import CoverageStatus
from .model import CoverageRequest


class CoverageRequestRepository(Protocol):
    def get(self, request_id: int) -> Optional[CoverageRequest]:
        raise NotImplementedError

    def find_pending(self, *, shift_id: int, replacement_employee_id: int) -> Optional[CoverageRequest]:
        raise NotImplementedError

    def create(
        self,
        *,
        shift_id: int,
        original_employee_id: int,
        replacement_employee_id: int,
        company_id: int,
        created_at: datetime,
    ) -> CoverageRequest:
        """Insert a pending request.

        Raises DuplicateRequestError when a pending request for the same
        (shift, replacement) pair already exists.
        """

        raise NotImplementedError

    def list_for_company(self, *, company_id: int, status: Optional[CoverageStatus] = None) -> Sequence[CoverageRequest]:
        raise NotImplementedError

    def pending_shift_ids(self, *, replacement_employee_id: int) -> set[int]:
        raise NotImplementedError

    def approve(
        self,
        *,
        request_id: int,
        shift_id: int,
        replacement_employee_id: int,
        approved_at: datetime,
        reviewed_by: int,
        sibling_note: str,
    ) -> bool:
        """Approve as one unit of work.

        Reassigns the shift (only if it has no approved replacement yet),
        moves the request ``pending -> approved`` and denies the other
        pending requests for the shift. Either everything is applied and
        True is returned, or nothing is and the result is False.
        """

        raise NotImplementedError

    def deny(self, *, request_id: int, reviewed_at: datetime, reviewed_by: int, notes: Optional[str] = None) -> bool:
        """``pending -> denied``; False if the request was no longer pending."""

        raise NotImplementedError
