from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Location, LocationLog


class LocationLogRepository(Protocol):
    def create(
        self,
        *,
        employee_id: int,
        entry_id: Optional[int],
        label: str,
        location: Location,
        recorded_at: datetime,
    ) -> int:
        raise NotImplementedError

    def list_for_employee(self, *, employee_id: int, limit: int = 50) -> Sequence[LocationLog]:
        raise NotImplementedError
