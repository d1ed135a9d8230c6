from __future__ import annotations

import logging
from datetime import datetime

from ..common.datetime_utils import utc_now
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_MARK_MAX_ATTEMPTS
from ..core.exceptions import AlreadyMarkedError, ConflictError, ExpiredError, NotFoundError
from ..sessions.repository import SessionRepository
from ..sessions.service import SessionLifecycleService
from .model import MarkResult

logger = logging.getLogger(__name__)


class AttendanceMarkingService:
    """Records a student's presence against the session a scanned code names.

    Each attempt reads the session, decides, then issues a single conditional
    write that re-checks the decision. A write that matches nothing means the
    session changed underneath us, so the attempt starts over from the read.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        lifecycle: SessionLifecycleService,
        *,
        max_attempts: int = DEFAULT_MARK_MAX_ATTEMPTS,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._sessions = sessions
        self._lifecycle = lifecycle
        self._max_attempts = int(max_attempts)

    def mark(self, code: str, student_id: str, *, now: datetime | None = None) -> MarkResult:
        now = now or utc_now()
        code = (code or "").strip()
        student_id = require_non_empty(student_id, "Student")
        if not code:
            raise NotFoundError("Invalid code")

        for attempt in range(1, self._max_attempts + 1):
            session = self._sessions.get_by_code(code)
            if not session:
                raise NotFoundError("Invalid code")

            if not self._lifecycle.is_active(session, now):
                self._lifecycle.expire(session.session_id)
                raise ExpiredError("Code expired")

            if session.has_student(student_id):
                logger.info("Student %s already marked in session %s", student_id, session.session_id)
                raise AlreadyMarkedError("Already marked")

            if self._sessions.mark_if_active(session_id=session.session_id, student_id=student_id, now=now):
                logger.info("Marked student %s in session %s", student_id, session.session_id)
                return MarkResult(
                    session_id=session.session_id,
                    subject=session.subject,
                    classroom=session.classroom,
                )

            logger.debug(
                "Conditional mark for student %s in session %s matched nothing (attempt %d/%d)",
                student_id,
                session.session_id,
                attempt,
                self._max_attempts,
            )

        logger.warning("Gave up marking student %s after %d attempts", student_id, self._max_attempts)
        raise ConflictError("Try again")
