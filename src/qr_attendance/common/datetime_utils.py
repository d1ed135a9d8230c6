from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (the store keeps naive UTC values).

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_iso(value: datetime) -> str:
    return value.replace(microsecond=0).isoformat() + "Z"
