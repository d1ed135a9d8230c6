from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from qr_attendance.attendance.service import AttendanceMarkingService
from qr_attendance.core.enums import SessionStatus
from qr_attendance.core.exceptions import AlreadyMarkedError, ConflictError, ExpiredError, NotFoundError


def test_mark_returns_confirmation(marking, session_factory, sessions_repo, t0):
    s = session_factory("s1", subject="Math", classroom="A101")

    result = marking.mark(s.code, "stu-a", now=t0 + timedelta(seconds=5))

    assert (result.session_id, result.subject, result.classroom) == ("s1", "Math", "A101")
    assert sessions_repo.get_by_id("s1").marked_students == {"stu-a"}


def test_second_mark_is_already_marked(marking, session_factory, sessions_repo, t0):
    s = session_factory("s1")
    marking.mark(s.code, "stu-a", now=t0)

    with pytest.raises(AlreadyMarkedError):
        marking.mark(s.code, "stu-a", now=t0 + timedelta(seconds=1))

    assert sessions_repo.get_by_id("s1").marked_students == {"stu-a"}


def test_unknown_code_is_not_found(marking, session_factory, t0):
    session_factory("s1")

    with pytest.raises(NotFoundError):
        marking.mark("not-a-code", "stu-a", now=t0)
    with pytest.raises(NotFoundError):
        marking.mark("   ", "stu-a", now=t0)


def test_elapsed_window_expires_and_rejects(marking, session_factory, sessions_repo, t0):
    s = session_factory("s1", window_seconds=60)

    with pytest.raises(ExpiredError):
        marking.mark(s.code, "stu-a", now=t0 + timedelta(seconds=60))

    stored = sessions_repo.get_by_id("s1")
    assert stored.status == SessionStatus.EXPIRED
    assert stored.marked_students == frozenset()


def test_closed_session_rejects_even_inside_window(marking, lifecycle, session_factory, t0):
    s = session_factory("s1", window_seconds=600)
    lifecycle.close_session(session_id="s1", owner_id="prof-1")

    with pytest.raises(ExpiredError):
        marking.mark(s.code, "stu-a", now=t0 + timedelta(seconds=1))


def test_one_minute_window_scenario(lifecycle, marking, sessions_repo, t0):
    s = lifecycle.open_session(owner_id="prof-1", subject="Math", classroom="A101", window_seconds=60, now=t0)

    marking.mark(s.code, "stu-a", now=t0 + timedelta(seconds=10))
    with pytest.raises(AlreadyMarkedError):
        marking.mark(s.code, "stu-a", now=t0 + timedelta(seconds=20))
    with pytest.raises(ExpiredError):
        marking.mark(s.code, "stu-b", now=t0 + timedelta(seconds=70))

    assert sessions_repo.get_by_id(s.session_id).marked_students == {"stu-a"}


def test_concurrent_distinct_students_are_all_recorded(marking, session_factory, sessions_repo, t0):
    s = session_factory("s1", window_seconds=600)
    students = [f"stu-{i:02d}" for i in range(40)]
    barrier = threading.Barrier(len(students))

    def scan(student_id):
        barrier.wait()
        return marking.mark(s.code, student_id, now=t0 + timedelta(seconds=3))

    with ThreadPoolExecutor(max_workers=len(students)) as pool:
        results = list(pool.map(scan, students))

    assert len(results) == len(students)
    assert sessions_repo.get_by_id("s1").marked_students == set(students)


def test_concurrent_same_student_counts_once(marking, session_factory, sessions_repo, t0):
    s = session_factory("s1", window_seconds=600)
    workers = 12
    barrier = threading.Barrier(workers)

    def scan(_):
        barrier.wait()
        try:
            marking.mark(s.code, "stu-a", now=t0 + timedelta(seconds=3))
            return "marked"
        except AlreadyMarkedError:
            return "already"

    with ThreadPoolExecutor(max_workers=workers) as pool:
        outcomes = list(pool.map(scan, range(workers)))

    assert outcomes.count("marked") == 1
    assert outcomes.count("already") == workers - 1
    assert sessions_repo.get_by_id("s1").marked_students == {"stu-a"}


def test_lost_race_is_retried(marking, session_factory, sessions_repo, monkeypatch, t0):
    s = session_factory("s1")
    original = sessions_repo.mark_if_active
    calls = []

    def flaky(**kwargs):
        calls.append(kwargs["student_id"])
        if len(calls) == 1:
            return False
        return original(**kwargs)

    monkeypatch.setattr(sessions_repo, "mark_if_active", flaky)

    marking.mark(s.code, "stu-a", now=t0)

    assert calls == ["stu-a", "stu-a"]
    assert sessions_repo.get_by_id("s1").marked_students == {"stu-a"}


def test_expiry_between_read_and_write_wins(marking, lifecycle, session_factory, sessions_repo, monkeypatch, t0):
    s = session_factory("s1", window_seconds=600)
    original = sessions_repo.mark_if_active

    def closed_underneath(**kwargs):
        lifecycle.close_session(session_id="s1", owner_id="prof-1")
        return original(**kwargs)

    monkeypatch.setattr(sessions_repo, "mark_if_active", closed_underneath)

    with pytest.raises(ExpiredError):
        marking.mark(s.code, "stu-a", now=t0)

    assert sessions_repo.get_by_id("s1").marked_students == frozenset()


def test_duplicate_written_concurrently_reads_as_already_marked(marking, session_factory, sessions_repo, monkeypatch, t0):
    s = session_factory("s1")
    original = sessions_repo.mark_if_active

    def other_device_first(**kwargs):
        original(**kwargs)
        return original(**kwargs)

    monkeypatch.setattr(sessions_repo, "mark_if_active", other_device_first)

    with pytest.raises(AlreadyMarkedError):
        marking.mark(s.code, "stu-a", now=t0)


def test_retries_are_bounded(sessions_repo, lifecycle, session_factory, monkeypatch, t0):
    s = session_factory("s1")
    calls = []

    def always_lose(**kwargs):
        calls.append(1)
        return False

    monkeypatch.setattr(sessions_repo, "mark_if_active", always_lose)
    svc = AttendanceMarkingService(sessions_repo, lifecycle, max_attempts=3)

    with pytest.raises(ConflictError):
        svc.mark(s.code, "stu-a", now=t0)

    assert len(calls) == 3


def test_max_attempts_must_be_positive(sessions_repo, lifecycle):
    with pytest.raises(ValueError):
        AttendanceMarkingService(sessions_repo, lifecycle, max_attempts=0)
