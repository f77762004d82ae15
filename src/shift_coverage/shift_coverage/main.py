from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.web import register_error_handlers
from .container import Container, build_container
from .core.constants import GRACE_MINUTES, LOCATION_TIMEOUT_SECONDS, MISSED_SHIFT_POLL_SECONDS, OVERTIME_THRESHOLD_HOURS
from .coverage.controller import register as register_coverage
from .database.bootstrap import apply_schema, list_tables
from .missed.poller import MissedShiftPoller
from .timeclock.controller import register as register_timeclock
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("mysql.connector").setLevel(logging.WARNING)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    grace_minutes = int(getattr(settings, "GRACE_MINUTES", GRACE_MINUTES))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            grace_minutes=grace_minutes,
            overtime_threshold_hours=float(getattr(settings, "OVERTIME_THRESHOLD_HOURS", OVERTIME_THRESHOLD_HOURS)),
            location_timeout_seconds=float(getattr(settings, "LOCATION_TIMEOUT_SECONDS", LOCATION_TIMEOUT_SECONDS)),
        )

    app.extensions["shift_coverage"] = container

    register_error_handlers(app)
    register_users(app, container)
    register_timeclock(app, container)
    register_attendance(app, container)
    register_coverage(app, container)

    if bool(getattr(settings, "START_MISSED_SHIFT_POLLER", False)):
        poller = MissedShiftPoller(
            container.missed_shift_detector,
            interval_seconds=float(getattr(settings, "MISSED_SHIFT_POLL_SECONDS", MISSED_SHIFT_POLL_SECONDS)),
        )
        poller.start()
        app.extensions["missed_shift_poller"] = poller

    return app
