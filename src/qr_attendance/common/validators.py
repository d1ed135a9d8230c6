from __future__ import annotations

from typing import Any

from ..core.exceptions import ValidationError


def require_non_empty(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_whole_number(value: Any, message: str) -> int:
    # bool is an int subclass; JSON true/false must not read as 1/0.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(message)
    return value


def require_window_seconds(value: Any, *, maximum: int) -> int:
    seconds = require_whole_number(value, "Window must be a whole number of seconds")
    if seconds <= 0:
        raise ValidationError("Window must be positive")
    if seconds > maximum:
        raise ValidationError(f"Window cannot exceed {maximum} seconds")
    return seconds
