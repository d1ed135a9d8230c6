from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from mysql.connector import errorcode
from mysql.connector import errors as mysql_errors

from ..core.exceptions import UnavailableError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

_UNAVAILABLE = (mysql_errors.InterfaceError, mysql_errors.OperationalError)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield ``(conn, cursor)`` inside one transaction.

    Connection-level failures surface as ``UnavailableError``; everything else
    propagates unchanged after a rollback.
    """

    try:
        conn = conn_factory.connect()
    except _UNAVAILABLE as exc:
        logger.error("Session store unreachable: %s", exc)
        raise UnavailableError("Session store is unavailable") from exc

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except _UNAVAILABLE as exc:
        _safe_rollback(conn)
        logger.error("Session store failed mid-operation: %s", exc)
        raise UnavailableError("Session store is unavailable") from exc
    except Exception:
        _safe_rollback(conn)
        raise
    finally:
        conn.close()


def _safe_rollback(conn) -> None:
    try:
        conn.rollback()
    except _UNAVAILABLE:
        logger.debug("Rollback skipped, connection already lost")


def is_duplicate_key(exc: mysql_errors.IntegrityError) -> bool:
    return getattr(exc, "errno", None) == errorcode.ER_DUP_ENTRY


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def in_clause(values: list) -> str:
    """Placeholder list for ``IN (...)``; callers must pass a non-empty list."""

    return ", ".join(["%s"] * len(values))
