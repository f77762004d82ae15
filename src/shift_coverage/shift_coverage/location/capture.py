"""Best-effort location capture.

A position query may be slow or fail outright. Capture is bounded by a
hard timeout and never raises into the action it accompanies: callers use
``try_capture`` and get back either a location or a user-facing warning.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from ..core.constants import LOCATION_TIMEOUT_SECONDS
from ..core.exceptions import LocationUnavailableError
from .model import Location
from .repository import LocationLogRepository

logger = logging.getLogger(__name__)

# A position source blocks until it has a fix (or raises).
PositionSource = Callable[..., Location]


@dataclass(frozen=True)
class CaptureResult:
    location: Optional[Location] = None
    warning: Optional[str] = None

    @property
    def captured(self) -> bool:
        return self.location is not None


class ReportedPosition:
    """Position reported by the client device alongside the request."""

    def __init__(self, latitude: Any, longitude: Any, accuracy: Any = None):
        self._latitude = latitude
        self._longitude = longitude
        self._accuracy = accuracy

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ReportedPosition":
        return cls(payload.get("latitude"), payload.get("longitude"), payload.get("accuracy"))

    def __call__(self, *, high_accuracy: bool = True) -> Location:
        if self._latitude is None or self._longitude is None:
            raise LocationUnavailableError("No position reported")
        try:
            lat = float(self._latitude)
            lng = float(self._longitude)
            acc = float(self._accuracy) if self._accuracy not in (None, "") else None
        except (TypeError, ValueError):
            raise LocationUnavailableError("Reported position is not numeric")

        if not (-90.0 <= lat <= 90.0) or not (-180.0 <= lng <= 180.0):
            raise LocationUnavailableError("Reported position is out of range")
        return Location(latitude=lat, longitude=lng, accuracy=acc)


def no_position(*, high_accuracy: bool = True) -> Location:
    raise LocationUnavailableError("No position source")


class LocationCapture:
    def __init__(
        self,
        *,
        timeout_seconds: float = LOCATION_TIMEOUT_SECONDS,
        high_accuracy: bool = True,
        executor: Optional[Executor] = None,
    ):
        self._timeout = float(timeout_seconds)
        self._high_accuracy = high_accuracy
        self._executor = executor or ThreadPoolExecutor(max_workers=4, thread_name_prefix="location")

    def capture(self, source: PositionSource) -> Location:
        """Query ``source`` once; raise LocationUnavailableError on failure or timeout."""

        future = self._executor.submit(source, high_accuracy=self._high_accuracy)
        try:
            return future.result(timeout=self._timeout)
        except FutureTimeout:
            future.cancel()
            raise LocationUnavailableError(f"Position query timed out after {self._timeout:g}s")
        except LocationUnavailableError:
            raise
        except Exception as e:
            raise LocationUnavailableError(str(e) or type(e).__name__) from e

    def try_capture(self, source: Optional[PositionSource], *, action: str) -> CaptureResult:
        try:
            return CaptureResult(location=self.capture(source or no_position))
        except LocationUnavailableError as e:
            logger.warning("Location unavailable for %s: %s", action, e)
            return CaptureResult(warning=f"{action} recorded without location: {e}")


class LocationLogger:
    """Detached writer for location-log records.

    Writes run on a worker thread; a failed write is logged and never
    reaches the clock action that produced it.
    """

    def __init__(self, logs: LocationLogRepository, *, executor: Optional[Executor] = None):
        self._logs = logs
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="location-log")

    def record(
        self,
        *,
        employee_id: int,
        entry_id: Optional[int],
        label: str,
        location: Location,
        recorded_at: datetime,
    ) -> Future:
        return self._executor.submit(
            self._write,
            employee_id=employee_id,
            entry_id=entry_id,
            label=label,
            location=location,
            recorded_at=recorded_at,
        )

    def _write(self, **kwargs) -> Optional[int]:
        try:
            return self._logs.create(**kwargs)
        except Exception:
            logger.warning(
                "Location log write failed (employee=%s, label=%s)",
                kwargs.get("employee_id"),
                kwargs.get("label"),
                exc_info=True,
            )
            return None
