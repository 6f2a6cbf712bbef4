"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_WORK_START_TIME = "09:00"
DEFAULT_WORK_END_TIME = "18:00"
DEFAULT_BREAK_START_TIME = "12:00"
DEFAULT_BREAK_END_TIME = "13:00"
DEFAULT_AUTO_BREAK_ENABLED = True

SESSION_TICK_SECONDS = 1.0

RECONNECT_BASE_DELAY = 1.0
RECONNECT_MAX_DELAY = 30.0
# 0 means retry forever
RECONNECT_MAX_ATTEMPTS = 0

STREAM_KEEPALIVE_SECONDS = 15.0
DEFAULT_LEAVE_LIST_LIMIT = 200
