import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "worktime_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

WORK_CONFIG_BACKEND = "memory"
LEAVE_REQUEST_BACKEND = "memory"

AUTO_INIT_DB = False
AUTO_SEED_DB = False
SEED_COMPANY_ID = "test-company"

SESSION_TICK_SECONDS = 1.0
START_SESSION_TICKER = False

RECONNECT_BASE_DELAY = 0.0
RECONNECT_MAX_DELAY = 0.0
RECONNECT_MAX_ATTEMPTS = 3

ENFORCE_WORK_START_TIME = False
