from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta

from ..core.enums import SessionStatus


@dataclass(frozen=True)
class Session:
    """Domain entity: one instructor-initiated attendance window.

    Instances are snapshots; the store is the only place a session changes.
    """

    session_id: str
    owner_id: str
    subject: str
    classroom: str
    code: str
    created_at: datetime
    window_seconds: int
    status: SessionStatus = SessionStatus.ACTIVE
    marked_students: frozenset[str] = field(default_factory=frozenset)

    @property
    def expires_at(self) -> datetime:
        return self.created_at + timedelta(seconds=self.window_seconds)

    def is_active(self, now: datetime) -> bool:
        return self.status == SessionStatus.ACTIVE and now < self.expires_at

    def effective_status(self, now: datetime) -> SessionStatus:
        return SessionStatus.ACTIVE if self.is_active(now) else SessionStatus.EXPIRED

    def has_student(self, student_id: str) -> bool:
        return student_id in self.marked_students

    def with_status(self, status: SessionStatus) -> "Session":
        return replace(self, status=status)
