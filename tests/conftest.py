from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional

import pytest

from qr_attendance.attendance.service import AttendanceMarkingService
from qr_attendance.core.enums import SessionStatus
from qr_attendance.reports.service import AttendanceReportService
from qr_attendance.sessions.model import Session
from qr_attendance.sessions.service import SessionLifecycleService
from qr_attendance.users.model import UserProfile

T0 = datetime(2026, 3, 2, 9, 0, 0)


class InMemorySessionRepository:
    """Store fake whose writes are atomic under one lock, like a single-document update."""

    def __init__(self):
        self._lock = threading.Lock()
        self._by_id: dict[str, Session] = {}

    def insert_session(self, session: Session) -> bool:
        with self._lock:
            if session.session_id in self._by_id:
                return False
            if any(s.code == session.code for s in self._by_id.values()):
                return False
            self._by_id[session.session_id] = session
            return True

    def get_by_id(self, session_id: str) -> Optional[Session]:
        return self._by_id.get(session_id)

    def get_by_code(self, code: str) -> Optional[Session]:
        return next((s for s in list(self._by_id.values()) if s.code == code), None)

    def list_for_owner(self, owner_id: str):
        items = [s for s in self._by_id.values() if s.owner_id == owner_id]
        items.sort(key=lambda s: s.created_at, reverse=True)
        return items

    def list_for_student(self, student_id: str):
        return [s for s in self._by_id.values() if student_id in s.marked_students]

    def count_for_owner_subject(self, *, owner_id: str, subject: str) -> int:
        return sum(1 for s in self._by_id.values() if s.owner_id == owner_id and s.subject == subject)

    def mark_if_active(self, *, session_id: str, student_id: str, now: datetime) -> bool:
        with self._lock:
            s = self._by_id.get(session_id)
            if not s or not s.is_active(now) or student_id in s.marked_students:
                return False
            self._by_id[session_id] = replace(s, marked_students=s.marked_students | {student_id})
            return True

    def expire_if_active(self, *, session_id: str) -> bool:
        with self._lock:
            s = self._by_id.get(session_id)
            if not s or s.status != SessionStatus.ACTIVE:
                return False
            self._by_id[session_id] = s.with_status(SessionStatus.EXPIRED)
            return True

    def expire_elapsed(self, *, now: datetime) -> int:
        with self._lock:
            count = 0
            for sid, s in list(self._by_id.items()):
                if s.status == SessionStatus.ACTIVE and now >= s.expires_at:
                    self._by_id[sid] = s.with_status(SessionStatus.EXPIRED)
                    count += 1
            return count


class InMemoryUserDirectory:
    def __init__(self, profiles: Iterable[UserProfile] = ()):
        self._profiles = {p.user_id: p for p in profiles}

    def get_profiles(self, user_ids):
        return {uid: self._profiles[uid] for uid in user_ids if uid in self._profiles}


def make_session(
    session_id: str,
    *,
    owner_id: str = "prof-1",
    subject: str = "Math",
    classroom: str = "A101",
    marked: Iterable[str] = (),
    created_at: datetime = T0,
    window_seconds: int = 60,
    status: SessionStatus = SessionStatus.ACTIVE,
) -> Session:
    return Session(
        session_id=session_id,
        owner_id=owner_id,
        subject=subject,
        classroom=classroom,
        code=f"code-{session_id}",
        created_at=created_at,
        window_seconds=window_seconds,
        status=status,
        marked_students=frozenset(marked),
    )


@pytest.fixture
def sessions_repo() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def users_repo() -> InMemoryUserDirectory:
    return InMemoryUserDirectory(
        [
            UserProfile(user_id="stu-a", name="Alice", email="alice@example.edu"),
            UserProfile(user_id="stu-b", name="Bob", email="bob@example.edu"),
        ]
    )


@pytest.fixture
def lifecycle(sessions_repo) -> SessionLifecycleService:
    return SessionLifecycleService(sessions_repo, default_window_seconds=60)


@pytest.fixture
def marking(sessions_repo, lifecycle) -> AttendanceMarkingService:
    return AttendanceMarkingService(sessions_repo, lifecycle, max_attempts=3)


@pytest.fixture
def reports(sessions_repo, users_repo) -> AttendanceReportService:
    return AttendanceReportService(sessions_repo, users_repo)


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def session_factory(sessions_repo):
    """Build a session and store it, bypassing the lifecycle service."""

    def _create(session_id: str, **kwargs) -> Session:
        session = make_session(session_id, **kwargs)
        assert sessions_repo.insert_session(session)
        return session

    return _create
