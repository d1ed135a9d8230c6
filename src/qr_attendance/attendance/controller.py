from __future__ import annotations

import logging
from dataclasses import asdict
from functools import wraps

from flask import Flask, jsonify, request, session

from ..common.datetime_utils import to_iso
from ..common.validators import require_whole_number
from ..core.enums import Role
from ..core.exceptions import (
    AlreadyMarkedError,
    ConflictError,
    DomainError,
    ExpiredError,
    ForbiddenError,
    NotFoundError,
    UnavailableError,
    ValidationError,
)
from ..container import Container
from ..reports.model import SessionDetail, SubjectReport
from ..sessions.model import Session
from ..users.model import Principal

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    NotFoundError: 404,
    ForbiddenError: 403,
    ExpiredError: 410,
    ConflictError: 409,
    ValidationError: 400,
}


def current_principal() -> Principal | None:
    """Principal placed in the Flask session by the identity service."""

    if "user_id" not in session:
        return None
    try:
        role = Role(session.get("role"))
    except ValueError:
        return None
    return Principal(
        user_id=str(session["user_id"]),
        role=role,
        name=session.get("name") or "",
        email=session.get("email"),
    )


def _error(message: str, http_status: int, **extra):
    body = {"success": False, "message": message}
    body.update(extra)
    return jsonify(body), http_status


def _session_json(s: Session) -> dict:
    return {
        "session_id": s.session_id,
        "subject": s.subject,
        "classroom": s.classroom,
        "code": s.code,
        "created_at": to_iso(s.created_at),
        "expires_at": to_iso(s.expires_at),
        "window_seconds": s.window_seconds,
        "status": s.status.value,
        "marked_count": len(s.marked_students),
    }


def _report_json(report: dict[str, SubjectReport]) -> dict:
    return {
        subject: {
            "totalSessions": r.total_sessions,
            "students": {
                sid: {
                    "name": st.name,
                    "email": st.email,
                    "attendanceCount": st.attendance_count,
                    "attendancePercentage": st.attendance_percentage,
                }
                for sid, st in r.students.items()
            },
        }
        for subject, r in report.items()
    }


def _detail_json(detail: SessionDetail) -> dict:
    return {
        "session_id": detail.session_id,
        "subject": detail.subject,
        "classroom": detail.classroom,
        "status": detail.status.value,
        "students": [
            {"id": st.student_id, "name": st.name, "email": st.email} for st in detail.students
        ],
    }


def register(app: Flask, container: Container) -> None:
    def role_required(role: Role):
        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                principal = current_principal()
                if principal is None:
                    return _error("Please sign in", 401)
                if principal.role != role:
                    return _error("Not authorized", 403)
                return view(principal, *args, **kwargs)

            return wrapper

        return decorator

    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        return _error(str(exc), _STATUS_CODES.get(type(exc), 400))

    @app.errorhandler(UnavailableError)
    def handle_unavailable(exc: UnavailableError):
        logger.error("Store unavailable while handling %s %s", request.method, request.path)
        response, status = _error("Try again", 503)
        response.headers["Retry-After"] = "2"
        return response, status

    @app.route("/api/attendance/sessions", methods=["POST"], endpoint="open_session")
    @role_required(Role.INSTRUCTOR)
    def open_session(principal: Principal):
        data = request.get_json(silent=True) or {}
        window = data.get("window_seconds")
        if window is None and data.get("window_minutes") is not None:
            window = require_whole_number(data["window_minutes"], "Window must be a whole number of minutes") * 60

        attempts = int(app.config.get("OPEN_SESSION_MAX_ATTEMPTS", 3))
        for attempt in range(1, attempts + 1):
            try:
                created = container.lifecycle_service.open_session(
                    owner_id=principal.user_id,
                    subject=data.get("subject"),
                    classroom=data.get("classroom") or data.get("classRoom"),
                    window_seconds=window,
                )
                break
            except ConflictError:
                if attempt == attempts:
                    raise
                logger.info("Retrying session creation after code collision (attempt %d)", attempt)

        body = {"success": True, "message": "Session created"}
        body.update(_session_json(created))
        return jsonify(body), 201

    @app.route("/api/attendance/sessions", methods=["GET"], endpoint="list_sessions")
    @role_required(Role.INSTRUCTOR)
    def list_sessions(principal: Principal):
        sessions = container.lifecycle_service.list_sessions(principal.user_id)
        return jsonify({"success": True, "sessions": [_session_json(s) for s in sessions]})

    @app.route("/api/attendance/sessions/<session_id>", methods=["GET"], endpoint="session_detail")
    @role_required(Role.INSTRUCTOR)
    def session_detail(principal: Principal, session_id: str):
        detail = container.report_service.session_detail(session_id, principal.user_id)
        return jsonify(_detail_json(detail))

    @app.route("/api/attendance/sessions/<session_id>/close", methods=["POST"], endpoint="close_session")
    @role_required(Role.INSTRUCTOR)
    def close_session(principal: Principal, session_id: str):
        closed = container.lifecycle_service.close_session(session_id=session_id, owner_id=principal.user_id)
        body = {"success": True, "message": "Session closed"}
        body.update(_session_json(closed))
        return jsonify(body)

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="mark_attendance")
    @role_required(Role.STUDENT)
    def mark_attendance(principal: Principal):
        data = request.get_json(silent=True) or {}
        code = str(data.get("code") or data.get("qr_code") or "")
        try:
            result = container.marking_service.mark(code, principal.user_id)
        except AlreadyMarkedError:
            return jsonify({"success": True, "status": "already_marked", "message": "Already marked"})
        except ExpiredError:
            return _error("Code expired", 410, status="expired")
        except NotFoundError:
            return _error("Invalid code", 404, status="invalid_code")
        except ConflictError:
            return _error("Try again", 409, status="retry")

        body = {"success": True, "status": "marked", "message": "Marked"}
        body.update(asdict(result))
        return jsonify(body)

    @app.route("/api/attendance/report", methods=["GET"], endpoint="attendance_report")
    @role_required(Role.INSTRUCTOR)
    def attendance_report(principal: Principal):
        return jsonify(_report_json(container.report_service.report_for(principal.user_id)))

    @app.route("/api/attendance/me", methods=["GET"], endpoint="my_attendance")
    @role_required(Role.STUDENT)
    def my_attendance(principal: Principal):
        history = container.report_service.student_history(principal.user_id)
        return jsonify(
            {
                subject: {
                    "attended": h.attended,
                    "totalClasses": h.total_classes,
                    "attendancePercentage": h.attendance_percentage,
                }
                for subject, h in history.items()
            }
        )
