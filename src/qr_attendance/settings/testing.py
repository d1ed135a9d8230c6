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
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

SESSION_WINDOW_SECONDS = 60
MAX_SESSION_WINDOW_SECONDS = 3600
MARK_MAX_ATTEMPTS = 3
OPEN_SESSION_MAX_ATTEMPTS = 3

AUTO_INIT_DB = False
