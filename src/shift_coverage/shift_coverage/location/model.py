from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    accuracy: Optional[float] = None

    def as_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude, "accuracy": self.accuracy}


@dataclass(frozen=True)
class LocationLog:
    log_id: int
    employee_id: int
    entry_id: Optional[int]
    label: str
    location: Location
    recorded_at: datetime


CLOCK_IN_LABEL = "Clock In"
CLOCK_OUT_LABEL = "Clock Out"
