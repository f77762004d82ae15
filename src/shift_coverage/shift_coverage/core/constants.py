"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

GRACE_MINUTES = 15
OVERTIME_THRESHOLD_HOURS = 8
LOCATION_TIMEOUT_SECONDS = 10
MISSED_SHIFT_POLL_SECONDS = 30
DEFAULT_HISTORY_LIMIT = 50
DEFAULT_REPORT_DAYS = 7

SIBLING_DENIED_NOTE = "Another replacement was approved"
