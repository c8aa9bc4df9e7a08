import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "qr_attendance_test"),
}

DEBUG = False
TESTING = True

AUTO_INIT_DB = False
AUTO_SEED_DB = False

# Tests drive the sweeper with run_once(); no background thread.
SWEEPER_ENABLED = False
SWEEP_INTERVAL_SECONDS = 60

DEFAULT_SESSION_MINUTES = 20
LATE_AFTER_MINUTES = 10

LOG_LEVEL = "WARNING"
