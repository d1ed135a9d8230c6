"""Housekeeping sweep: persist EXPIRED for sessions whose window has passed.

Safe to run from cron at any cadence; marking and reporting evaluate expiry on
access and never depend on this script having run.
"""

from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv

from qr_attendance.container import build_container
from qr_attendance.settings import get_settings_module


def main() -> None:
    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=dict(settings.DB_CONFIG), settings=settings)
    count = container.lifecycle_service.expire_elapsed()
    print(f"OK: expired {count} session(s)")


if __name__ == "__main__":
    main()
