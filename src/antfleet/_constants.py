"""Internal constants shared across the library."""

from datetime import timedelta

USER_AGENT = "antfleet/0.1"

#: API version requested at login; the server answers with the path segment
#: (e.g. ``v2``) to use for every later call.
LOGIN_API_VERSION: dict[str, int] = {"major": 0, "minor": 1}

DEFAULT_POLL_INTERVAL: float = 1.0
DEFAULT_RECENT_WINDOW = timedelta(minutes=3)
DEFAULT_ALARM_LIMIT = 50

# Default mission creation parameters used by the fleet server UI.
DEFAULT_REQUESTOR = "admin"
DEFAULT_MISSION_PRIORITY = "2"
DEFAULT_MISSION_CARDINALITY = "1"

NAVIGATION_LAYER = "navigation"

# Server-side selection timestamp format (local time, no zone).
SELECTION_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

LOW_BATTERY_THRESHOLD = 30
