import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "worktime_db"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

WORK_CONFIG_BACKEND = os.getenv("WORK_CONFIG_BACKEND", "mysql")
LEAVE_REQUEST_BACKEND = os.getenv("LEAVE_REQUEST_BACKEND", "mysql")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
SEED_COMPANY_ID = os.getenv("SEED_COMPANY_ID", "")

SESSION_TICK_SECONDS = float(os.getenv("SESSION_TICK_SECONDS", "1"))
START_SESSION_TICKER = bool(int(os.getenv("START_SESSION_TICKER", "1")))

RECONNECT_BASE_DELAY = float(os.getenv("RECONNECT_BASE_DELAY", "1"))
RECONNECT_MAX_DELAY = float(os.getenv("RECONNECT_MAX_DELAY", "30"))
RECONNECT_MAX_ATTEMPTS = int(os.getenv("RECONNECT_MAX_ATTEMPTS", "0"))

ENFORCE_WORK_START_TIME = bool(int(os.getenv("ENFORCE_WORK_START_TIME", "1")))
