from __future__ import annotations

import threading

from src.shift_coverage.shift_coverage.missed.poller import JOB_ID, MissedShiftPoller


class CountingDetector:
    def __init__(self, *, fail_first: bool = False):
        self.calls = 0
        self.fail_first = fail_first
        self.scopes = []
        self.twice = threading.Event()

    def check_and_mark(self, *, employee_id=None, company_id=None, now=None):
        self.calls += 1
        self.scopes.append(company_id)
        if self.calls >= 2:
            self.twice.set()
        if self.fail_first and self.calls == 1:
            raise RuntimeError("store down")
        return True


def test_run_once_logs_and_survives_errors(caplog):
    detector = CountingDetector(fail_first=True)
    poller = MissedShiftPoller(detector, company_id=3)

    assert poller.run_once() is False
    assert poller.run_once() is True
    assert detector.scopes == [3, 3]
    assert "Missed-shift scan failed" in caplog.text


def test_start_registers_one_interval_job():
    poller = MissedShiftPoller(CountingDetector(), interval_seconds=600)

    poller.start()
    try:
        poller.start()
        jobs = poller._scheduler.get_jobs()
        assert [job.id for job in jobs] == [JOB_ID]
        assert jobs[0].trigger.interval.total_seconds() == 600
    finally:
        poller.stop()


def test_scheduler_keeps_ticking_after_a_failure_and_stops():
    detector = CountingDetector(fail_first=True)
    poller = MissedShiftPoller(detector, interval_seconds=0.05)

    poller.start()
    try:
        assert detector.twice.wait(5)
        assert poller.running
    finally:
        poller.stop()

    assert not poller.running


def test_stop_before_start_is_a_no_op():
    poller = MissedShiftPoller(CountingDetector())

    poller.stop()

    assert not poller.running
