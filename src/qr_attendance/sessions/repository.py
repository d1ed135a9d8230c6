from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Session


class SessionRepository(Protocol):
    """Persistent collection of Session records.

    The only writes allowed on a stored session are ``mark_if_active`` and the
    ``expire_*`` compare-and-set updates.
    """

    def insert_session(self, session: Session) -> bool:
        """Insert a new session; ``False`` when its code is already taken."""

        raise NotImplementedError

    def get_by_id(self, session_id: str) -> Optional[Session]:
        raise NotImplementedError

    def get_by_code(self, code: str) -> Optional[Session]:
        raise NotImplementedError

    def list_for_owner(self, owner_id: str) -> Sequence[Session]:
        """All sessions of an owner, newest first."""

        raise NotImplementedError

    def list_for_student(self, student_id: str) -> Sequence[Session]:
        """Sessions whose marked set contains the student."""

        raise NotImplementedError

    def count_for_owner_subject(self, *, owner_id: str, subject: str) -> int:
        raise NotImplementedError

    def mark_if_active(self, *, session_id: str, student_id: str, now: datetime) -> bool:
        """Atomically add the student iff the session is active at ``now`` and
        the student is absent. ``False`` means nothing was written."""

        raise NotImplementedError

    def expire_if_active(self, *, session_id: str) -> bool:
        """Compare-and-set ACTIVE -> EXPIRED; ``True`` only for the winning writer."""

        raise NotImplementedError

    def expire_elapsed(self, *, now: datetime) -> int:
        """Persist EXPIRED for every active session whose window has passed."""

        raise NotImplementedError
