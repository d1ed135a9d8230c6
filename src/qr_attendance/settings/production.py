import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "qr_attendance"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

SESSION_WINDOW_SECONDS = int(os.getenv("SESSION_WINDOW_SECONDS", "120"))
MAX_SESSION_WINDOW_SECONDS = int(os.getenv("MAX_SESSION_WINDOW_SECONDS", "10800"))
MARK_MAX_ATTEMPTS = int(os.getenv("MARK_MAX_ATTEMPTS", "3"))
OPEN_SESSION_MAX_ATTEMPTS = int(os.getenv("OPEN_SESSION_MAX_ATTEMPTS", "3"))

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
