import os


def get_settings_module() -> str:
    # APP_ENV picks the settings module; anything unrecognized means development.
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "qr_attendance.settings.production"

    if env in {"test", "testing"}:
        return "qr_attendance.settings.testing"

    return "qr_attendance.settings.development"
