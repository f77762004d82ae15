from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import AttendanceStatus
from ..shifts.model import Shift
from ..timeclock.model import ClockEntry


@dataclass(frozen=True)
class ShiftView:
    """Read-model: a shift, the entry worked against it and its projected status."""

    shift: Shift
    entry: Optional[ClockEntry]
    status: AttendanceStatus
