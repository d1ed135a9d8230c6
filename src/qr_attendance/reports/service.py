from __future__ import annotations

from collections import Counter, defaultdict
from datetime import datetime

from ..common.datetime_utils import utc_now
from ..core.exceptions import ForbiddenError, NotFoundError
from ..sessions.model import Session
from ..sessions.repository import SessionRepository
from ..users.repository import UserDirectory
from .model import SessionDetail, StudentAttendance, StudentEntry, SubjectHistory, SubjectReport


def _percentage(count: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return count / total * 100


class AttendanceReportService:
    """Aggregates raw marks into per-subject and per-student statistics.

    Percentages are kept as unrounded floats; rounding is a display concern.
    """

    def __init__(self, sessions: SessionRepository, users: UserDirectory):
        self._sessions = sessions
        self._users = users

    def report_for(self, owner_id: str) -> dict[str, SubjectReport]:
        by_subject: dict[str, list[Session]] = defaultdict(list)
        for s in self._sessions.list_for_owner(owner_id):
            # Guard the owner invariant even if a store adapter over-fetches.
            if s.owner_id == owner_id:
                by_subject[s.subject].append(s)

        seen = {sid for group in by_subject.values() for s in group for sid in s.marked_students}
        profiles = self._users.get_profiles(seen)

        report: dict[str, SubjectReport] = {}
        for subject, group in by_subject.items():
            total = len(group)
            counts = Counter(sid for s in group for sid in s.marked_students)
            students = {}
            for sid, count in counts.items():
                profile = profiles.get(sid)
                students[sid] = StudentAttendance(
                    student_id=sid,
                    name=profile.name if profile else None,
                    email=profile.email if profile else None,
                    attendance_count=count,
                    attendance_percentage=_percentage(count, total),
                )
            report[subject] = SubjectReport(subject=subject, total_sessions=total, students=students)
        return report

    def session_detail(self, session_id: str, owner_id: str, *, now: datetime | None = None) -> SessionDetail:
        session = self._sessions.get_by_id(session_id)
        if not session:
            raise NotFoundError("Session not found")
        if session.owner_id != owner_id:
            raise ForbiddenError("Not authorized")

        profiles = self._users.get_profiles(session.marked_students)
        students = []
        for sid in sorted(session.marked_students):
            profile = profiles.get(sid)
            students.append(
                StudentEntry(
                    student_id=sid,
                    name=profile.name if profile else None,
                    email=profile.email if profile else None,
                )
            )

        return SessionDetail(
            session_id=session.session_id,
            subject=session.subject,
            classroom=session.classroom,
            status=session.effective_status(now or utc_now()),
            students=students,
        )

    def student_history(self, student_id: str) -> dict[str, SubjectHistory]:
        attended: Counter[tuple[str, str]] = Counter()
        for s in self._sessions.list_for_student(student_id):
            if s.has_student(student_id):
                attended[(s.owner_id, s.subject)] += 1

        totals: dict[str, list[int]] = defaultdict(lambda: [0, 0])
        for (owner_id, subject), count in attended.items():
            total = self._sessions.count_for_owner_subject(owner_id=owner_id, subject=subject)
            totals[subject][0] += count
            totals[subject][1] += total

        return {
            subject: SubjectHistory(
                subject=subject,
                attended=count,
                total_classes=total,
                attendance_percentage=_percentage(count, total),
            )
            for subject, (count, total) in totals.items()
        }
