from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ..model import WorkedHours


class HoursCalculator(ABC):
    """Calculator interface (Strategy Pattern for worked hours)."""

    @abstractmethod
    def worked_hours(
        self,
        *,
        clock_in: datetime,
        clock_out: datetime,
        break_start: Optional[datetime] = None,
        break_end: Optional[datetime] = None,
    ) -> WorkedHours:
        raise NotImplementedError
