from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MarkResult:
    """Confirmation shown to the student after a successful scan."""

    session_id: str
    subject: str
    classroom: str
