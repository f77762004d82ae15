from __future__ import annotations

import importlib
import logging
import signal
import sys
import threading
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.shift_coverage.shift_coverage.container import build_container
from src.shift_coverage.shift_coverage.main import configure_logging
from src.shift_coverage.shift_coverage.missed.poller import MissedShiftPoller

logger = logging.getLogger("missed_shift_poller")


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(db_config=dict(settings.DB_CONFIG), grace_minutes=int(settings.GRACE_MINUTES))
    poller = MissedShiftPoller(container.missed_shift_detector, interval_seconds=float(settings.MISSED_SHIFT_POLL_SECONDS))

    done = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: done.set())
    signal.signal(signal.SIGTERM, lambda *_: done.set())

    poller.start()
    done.wait()
    logger.info("Stopping missed-shift poller")
    poller.stop()


if __name__ == "__main__":
    main()
