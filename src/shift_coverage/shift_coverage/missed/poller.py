from __future__ import annotations

import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler

from ..common.datetime_utils import now_utc
from ..core.constants import MISSED_SHIFT_POLL_SECONDS
from .detector import MissedShiftDetector

logger = logging.getLogger(__name__)

JOB_ID = "missed-shift-scan"


class MissedShiftPoller:
    """Runs the missed-shift scan on a fixed interval with APScheduler.

    User-triggered scans call the same detector; both paths are idempotent.
    The first scan fires as soon as the poller starts.
    """

    def __init__(
        self,
        detector: MissedShiftDetector,
        *,
        interval_seconds: float = MISSED_SHIFT_POLL_SECONDS,
        company_id: Optional[int] = None,
    ):
        self._detector = detector
        self._interval = float(interval_seconds)
        self._company_id = company_id
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def run_once(self) -> bool:
        """One scan. Errors are logged; the next tick retries."""

        try:
            return self._detector.check_and_mark(company_id=self._company_id)
        except Exception:
            logger.exception("Missed-shift scan failed")
            return False

    def start(self) -> None:
        if self.running:
            return
        scheduler = BackgroundScheduler(
            timezone="UTC",
            daemon=True,
            # A slow scan must not pile up behind itself.
            job_defaults={"coalesce": True, "max_instances": 1},
        )
        scheduler.add_job(
            self.run_once,
            "interval",
            seconds=self._interval,
            next_run_time=now_utc(),
            id=JOB_ID,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info("Missed-shift poller started (every %.0fs)", self._interval)

    def stop(self, *, wait: bool = True) -> None:
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
        self._scheduler = None
        logger.info("Missed-shift poller stopped")
