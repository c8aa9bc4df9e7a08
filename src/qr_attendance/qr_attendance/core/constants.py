"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

SWEEP_INTERVAL_SECONDS = 60
DEFAULT_SESSION_MINUTES = 20
MIN_SESSION_MINUTES = 1
MAX_SESSION_MINUTES = 180
DEFAULT_LATE_AFTER_MINUTES = 10
MIN_PASSWORD_LENGTH = 6
SWEEP_JOB_ID = "session_expiration_sweep"
