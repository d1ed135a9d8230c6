from __future__ import annotations

from dataclasses import dataclass

from .attendance.service import AttendanceMarkingService
from .core.constants import (
    DEFAULT_MARK_MAX_ATTEMPTS,
    DEFAULT_SESSION_WINDOW_SECONDS,
    MAX_SESSION_WINDOW_SECONDS,
)
from .database.connection import DatabaseConnection, DBConfig
from .reports.service import AttendanceReportService
from .sessions.code_generator import CodeGenerator
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository
from .sessions.service import SessionLifecycleService
from .users.mysql_user_repository import MySQLUserDirectory
from .users.repository import UserDirectory


@dataclass(frozen=True)
class Container:
    sessions_repo: SessionRepository
    users_repo: UserDirectory

    lifecycle_service: SessionLifecycleService
    marking_service: AttendanceMarkingService
    report_service: AttendanceReportService


def build_services(
    *,
    sessions_repo: SessionRepository,
    users_repo: UserDirectory,
    window_seconds: int = DEFAULT_SESSION_WINDOW_SECONDS,
    max_window_seconds: int = MAX_SESSION_WINDOW_SECONDS,
    mark_max_attempts: int = DEFAULT_MARK_MAX_ATTEMPTS,
    code_generator: CodeGenerator | None = None,
) -> Container:
    lifecycle_service = SessionLifecycleService(
        sessions_repo,
        code_generator=code_generator or CodeGenerator(),
        default_window_seconds=window_seconds,
        max_window_seconds=max_window_seconds,
    )
    marking_service = AttendanceMarkingService(sessions_repo, lifecycle_service, max_attempts=mark_max_attempts)
    report_service = AttendanceReportService(sessions_repo, users_repo)

    return Container(
        sessions_repo=sessions_repo,
        users_repo=users_repo,
        lifecycle_service=lifecycle_service,
        marking_service=marking_service,
        report_service=report_service,
    )


def build_container(*, db_config: dict, settings: object | None = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return build_services(
        sessions_repo=MySQLSessionRepository(conn),
        users_repo=MySQLUserDirectory(conn),
        window_seconds=int(getattr(settings, "SESSION_WINDOW_SECONDS", DEFAULT_SESSION_WINDOW_SECONDS)),
        max_window_seconds=int(getattr(settings, "MAX_SESSION_WINDOW_SECONDS", MAX_SESSION_WINDOW_SECONDS)),
        mark_max_attempts=int(getattr(settings, "MARK_MAX_ATTEMPTS", DEFAULT_MARK_MAX_ATTEMPTS)),
    )
