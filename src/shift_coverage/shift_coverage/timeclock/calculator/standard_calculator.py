from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ...core.constants import OVERTIME_THRESHOLD_HOURS
from ..model import WorkedHours
from .base import HoursCalculator


def round_hours(value: float) -> float:
    """Round to 2 decimals, halves away from zero."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class StandardHoursCalculator(HoursCalculator):
    """Standard rule: (out - in) - (break_end - break_start), not below 0.

    A break without an end is not deducted. Overtime is everything above a
    flat daily threshold, independent of the scheduled shift length.
    """

    def __init__(self, *, overtime_threshold_hours: float = OVERTIME_THRESHOLD_HOURS):
        self._threshold = float(overtime_threshold_hours)

    def worked_hours(
        self,
        *,
        clock_in: datetime,
        clock_out: datetime,
        break_start: Optional[datetime] = None,
        break_end: Optional[datetime] = None,
    ) -> WorkedHours:
        seconds = (clock_out - clock_in).total_seconds()
        if break_start is not None and break_end is not None:
            seconds -= (break_end - break_start).total_seconds()
        seconds = max(seconds, 0.0)

        total = round_hours(seconds / 3600.0)
        overtime = round_hours(total - self._threshold) if total > self._threshold else 0.0
        return WorkedHours(total_hours=total, overtime_hours=overtime)
