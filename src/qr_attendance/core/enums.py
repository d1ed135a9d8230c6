from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role of the authenticated principal, as supplied by the identity service."""

    INSTRUCTOR = "instructor"
    STUDENT = "student"


class SessionStatus(str, Enum):
    """Persisted lifecycle state of an attendance session."""

    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
