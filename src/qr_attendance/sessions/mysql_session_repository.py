from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from mysql.connector import errors as mysql_errors

from ..core.enums import SessionStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, is_duplicate_key
from .model import Session
from .repository import SessionRepository

_SESSION_COLUMNS = "session_id, owner_id, subject, classroom, code, created_at, window_seconds, status"


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_session(r: dict, marked: frozenset[str]) -> Session:
        return Session(
            session_id=str(r["session_id"]),
            owner_id=str(r["owner_id"]),
            subject=r["subject"],
            classroom=r["classroom"],
            code=r["code"],
            created_at=r["created_at"],
            window_seconds=int(r["window_seconds"]),
            status=SessionStatus(r["status"]),
            marked_students=marked,
        )

    @staticmethod
    def _marks_for(cur, session_ids: list[str]) -> dict[str, set[str]]:
        marks: dict[str, set[str]] = {sid: set() for sid in session_ids}
        if not session_ids:
            return marks
        cur.execute(
            f"""
            SELECT session_id, student_id
            FROM session_marks
            WHERE session_id IN ({in_clause(session_ids)})
            """,
            tuple(session_ids),
        )
        for r in fetchall(cur):
            marks[str(r["session_id"])].add(str(r["student_id"]))
        return marks

    def _hydrate(self, cur, rows: list[dict]) -> list[Session]:
        marks = self._marks_for(cur, [str(r["session_id"]) for r in rows])
        return [self._to_session(r, frozenset(marks[str(r["session_id"])])) for r in rows]

    def _get_one(self, where: str, value: str) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SESSION_COLUMNS} FROM attendance_sessions WHERE {where}=%s", (value,))
            r = fetchone(cur)
            if not r:
                return None
            return self._hydrate(cur, [r])[0]

    def insert_session(self, session: Session) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_sessions(
                        session_id, owner_id, subject, classroom, code, created_at, window_seconds, status
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        session.session_id,
                        session.owner_id,
                        session.subject,
                        session.classroom,
                        session.code,
                        session.created_at,
                        int(session.window_seconds),
                        session.status.value,
                    ),
                )
        except mysql_errors.IntegrityError as exc:
            if is_duplicate_key(exc):
                return False
            raise
        return True

    def get_by_id(self, session_id: str) -> Optional[Session]:
        return self._get_one("session_id", session_id)

    def get_by_code(self, code: str) -> Optional[Session]:
        return self._get_one("code", code)

    def list_for_owner(self, owner_id: str) -> Sequence[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM attendance_sessions
                WHERE owner_id=%s
                ORDER BY created_at DESC
                """,
                (owner_id,),
            )
            return self._hydrate(cur, fetchall(cur))

    def list_for_student(self, student_id: str) -> Sequence[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT s.session_id, s.owner_id, s.subject, s.classroom, s.code,
                       s.created_at, s.window_seconds, s.status
                FROM attendance_sessions s
                JOIN session_marks m ON m.session_id = s.session_id
                WHERE m.student_id=%s
                ORDER BY s.created_at DESC
                """,
                (student_id,),
            )
            return self._hydrate(cur, fetchall(cur))

    def count_for_owner_subject(self, *, owner_id: str, subject: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS total FROM attendance_sessions WHERE owner_id=%s AND subject=%s",
                (owner_id, subject),
            )
            r = fetchone(cur)
            return int(r["total"]) if r else 0

    def mark_if_active(self, *, session_id: str, student_id: str, now: datetime) -> bool:
        # The primary key on (session_id, student_id) makes a duplicate a no-op;
        # the SELECT predicate re-checks status and window in the same statement.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO session_marks(session_id, student_id, marked_at)
                SELECT s.session_id, %s, %s
                FROM attendance_sessions s
                WHERE s.session_id=%s
                  AND s.status=%s
                  AND DATE_ADD(s.created_at, INTERVAL s.window_seconds SECOND) > %s
                """,
                (student_id, now, session_id, SessionStatus.ACTIVE.value, now),
            )
            return cur.rowcount > 0

    def expire_if_active(self, *, session_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_sessions SET status=%s WHERE session_id=%s AND status=%s",
                (SessionStatus.EXPIRED.value, session_id, SessionStatus.ACTIVE.value),
            )
            return cur.rowcount > 0

    def expire_elapsed(self, *, now: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_sessions
                SET status=%s
                WHERE status=%s
                  AND DATE_ADD(created_at, INTERVAL window_seconds SECOND) <= %s
                """,
                (SessionStatus.EXPIRED.value, SessionStatus.ACTIVE.value, now),
            )
            return int(cur.rowcount)
