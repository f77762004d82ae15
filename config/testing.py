import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "shift_coverage_test_db"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

GRACE_MINUTES = 15
OVERTIME_THRESHOLD_HOURS = 8
LOCATION_TIMEOUT_SECONDS = 1
MISSED_SHIFT_POLL_SECONDS = 30
START_MISSED_SHIFT_POLLER = False
