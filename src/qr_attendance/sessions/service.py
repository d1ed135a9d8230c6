from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import utc_now
from ..common.validators import require_non_empty, require_window_seconds
from ..core.constants import DEFAULT_SESSION_WINDOW_SECONDS, MAX_SESSION_WINDOW_SECONDS
from ..core.enums import SessionStatus
from ..core.exceptions import ConflictError, ForbiddenError, NotFoundError
from .code_generator import CodeGenerator
from .model import Session
from .repository import SessionRepository

logger = logging.getLogger(__name__)


def _new_session_id() -> str:
    return uuid.uuid4().hex


class SessionLifecycleService:
    """Creates sessions and owns the ACTIVE -> EXPIRED transition.

    Expiry is lazy: a session whose window has elapsed is treated as expired by
    every reader and persisted as such by whichever caller notices first.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        *,
        code_generator: CodeGenerator | None = None,
        id_factory: Callable[[], str] = _new_session_id,
        default_window_seconds: int = DEFAULT_SESSION_WINDOW_SECONDS,
        max_window_seconds: int = MAX_SESSION_WINDOW_SECONDS,
    ):
        self._sessions = sessions
        self._codes = code_generator or CodeGenerator()
        self._id_factory = id_factory
        self._default_window = int(default_window_seconds)
        self._max_window = int(max_window_seconds)

    @property
    def default_window_seconds(self) -> int:
        return self._default_window

    def open_session(
        self,
        *,
        owner_id: str,
        subject: str,
        classroom: str,
        window_seconds: Optional[int] = None,
        now: datetime | None = None,
    ) -> Session:
        now = now or utc_now()
        window = require_window_seconds(
            self._default_window if window_seconds is None else window_seconds,
            maximum=self._max_window,
        )

        session = Session(
            session_id=self._id_factory(),
            owner_id=require_non_empty(owner_id, "Owner"),
            subject=require_non_empty(subject, "Subject"),
            classroom=require_non_empty(classroom, "Classroom"),
            code=self._codes.generate(),
            created_at=now,
            window_seconds=window,
        )

        if not self._sessions.insert_session(session):
            logger.warning("Session code collision for owner %s, generation must be retried", owner_id)
            raise ConflictError("Generated session code is already in use")

        logger.info(
            "Opened session %s for owner %s (subject=%r, window=%ss)",
            session.session_id,
            session.owner_id,
            session.subject,
            window,
        )
        return session

    @staticmethod
    def is_active(session: Session, now: datetime) -> bool:
        return session.is_active(now)

    def expire(self, session_id: str) -> Session:
        """Idempotently move a session to EXPIRED and return its stored state."""

        if self._sessions.expire_if_active(session_id=session_id):
            logger.info("Session %s expired", session_id)

        session = self._sessions.get_by_id(session_id)
        if not session:
            raise NotFoundError("Session not found")
        return session

    def close_session(self, *, session_id: str, owner_id: str) -> Session:
        session = self._sessions.get_by_id(session_id)
        if not session:
            raise NotFoundError("Session not found")
        if session.owner_id != owner_id:
            raise ForbiddenError("Not authorized")

        logger.info("Owner %s closing session %s", owner_id, session_id)
        return self.expire(session_id)

    def list_sessions(self, owner_id: str, *, now: datetime | None = None) -> list[Session]:
        """Owner's sessions, newest first; elapsed ones are expired on the way out."""

        now = now or utc_now()
        out: list[Session] = []
        for session in self._sessions.list_for_owner(owner_id):
            if session.status == SessionStatus.ACTIVE and not session.is_active(now):
                self._sessions.expire_if_active(session_id=session.session_id)
                session = session.with_status(SessionStatus.EXPIRED)
            out.append(session)
        return out

    def expire_elapsed(self, *, now: datetime | None = None) -> int:
        count = self._sessions.expire_elapsed(now=now or utc_now())
        if count:
            logger.info("Housekeeping expired %d elapsed session(s)", count)
        return count
