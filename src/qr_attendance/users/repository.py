from __future__ import annotations

from typing import Iterable, Mapping, Protocol

from .model import UserProfile


class UserDirectory(Protocol):
    """Read-only view over the identity service's user records.

    Note (DIP): report/detail services depend on this interface, not on the DB.
    """

    def get_profiles(self, user_ids: Iterable[str]) -> Mapping[str, UserProfile]:
        """Profiles keyed by id; unknown ids are simply absent."""

        raise NotImplementedError
