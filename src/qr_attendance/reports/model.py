from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..core.enums import SessionStatus


@dataclass(frozen=True)
class StudentAttendance:
    student_id: str
    name: Optional[str]
    email: Optional[str]
    attendance_count: int
    attendance_percentage: float


@dataclass(frozen=True)
class SubjectReport:
    """Read-model: one subject of an instructor's report (point-in-time snapshot)."""

    subject: str
    total_sessions: int
    students: dict[str, StudentAttendance] = field(default_factory=dict)


@dataclass(frozen=True)
class StudentEntry:
    student_id: str
    name: Optional[str]
    email: Optional[str]


@dataclass(frozen=True)
class SessionDetail:
    session_id: str
    subject: str
    classroom: str
    status: SessionStatus
    students: list[StudentEntry] = field(default_factory=list)


@dataclass(frozen=True)
class SubjectHistory:
    """A student's own standing in one subject."""

    subject: str
    attended: int
    total_classes: int
    attendance_percentage: float
