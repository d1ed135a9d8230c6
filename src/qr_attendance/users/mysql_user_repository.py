from __future__ import annotations

from typing import Iterable, Mapping

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, in_clause
from .model import UserProfile
from .repository import UserDirectory


class MySQLUserDirectory(UserDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_profiles(self, user_ids: Iterable[str]) -> Mapping[str, UserProfile]:
        ids = sorted({str(u) for u in user_ids})
        if not ids:
            return {}

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT user_id, full_name, email
                FROM users
                WHERE user_id IN ({in_clause(ids)})
                """,
                tuple(ids),
            )
            return {
                str(r["user_id"]): UserProfile(
                    user_id=str(r["user_id"]),
                    name=r["full_name"],
                    email=r.get("email"),
                )
                for r in fetchall(cur)
            }
