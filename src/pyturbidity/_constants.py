"""Internal constants shared across the library."""

DEFAULT_METRIC = "turbidity"
DEFAULT_UNIT = "NTU"
DEFAULT_SOURCE_ID = "Android_App"
HISTORY_ENTRY_SOURCE_ID = "Android App"
DEFAULT_HISTORY_SOURCE = "Unknown"

#: Readings strictly above this value raise a ``high_<metric>`` alert.
DEFAULT_ALERT_THRESHOLD = 1000.0

DEFAULT_REQUEST_TIMEOUT = 10.0

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# ------------------------------------------------------------------
# Firebase push keys
# ------------------------------------------------------------------

# Modified base64 alphabet, ordered by ASCII value so keys sort by time.
PUSH_CHARS = "-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz"
PUSH_TIME_CHARS = 8
PUSH_RANDOM_CHARS = 12

#: The streaming endpoint sends ``keep-alive`` every ~30 s; three missed
#: beats mean the connection is dead.
STREAM_IDLE_TIMEOUT = 90.0
