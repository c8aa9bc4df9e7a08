from __future__ import annotations

from datetime import timedelta

import pytest

from src.qr_attendance.qr_attendance.core.enums import AttendanceStatus, Role
from src.qr_attendance.qr_attendance.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.qr_attendance.qr_attendance.sessions.service import attendance_code


def test_create_sets_expiry_and_qr_payload(container, fixed_now):
    session = container.session_service.create(
        current_role=Role.ADMIN, created_by="admin", name="Physics", duration=15, now=fixed_now
    )

    assert session.is_active
    assert session.created_at == fixed_now
    assert session.expires_at == fixed_now + timedelta(minutes=15)
    assert session.duration == 15
    assert session.qr_code and len(session.qr_code) == 32


def test_create_uses_default_length(container, fixed_now):
    session = container.session_service.create(
        current_role=Role.ADMIN, created_by="admin", name="Physics", now=fixed_now
    )

    assert session.expires_at - session.created_at == timedelta(minutes=20)
    assert session.to_dict()["duration"] == 20


def test_create_with_expires_after_ms(container, fixed_now):
    session = container.session_service.create(
        current_role=Role.ADMIN, created_by="admin", name="Quiz", expires_after_ms=90_000, now=fixed_now
    )

    assert session.expires_at == fixed_now + timedelta(seconds=90)
    assert session.duration is None


def test_create_closes_previous_active_session(container, make_session, sessions_repo, attendance_repo, fixed_now):
    make_session(1, expires_in_minutes=10)
    attendance_repo.add(user_id=2, session_id=1, check_in_time=fixed_now)

    new = container.session_service.create(
        current_role=Role.ADMIN, created_by="admin", name="Chemistry", now=fixed_now
    )

    assert sessions_repo.get_by_id(1).is_active is False
    assert attendance_repo.get_for_user_and_session(3, 1).status == AttendanceStatus.ABSENT
    assert sessions_repo.get_latest_active() == new


def test_only_admin_creates_sessions(container, fixed_now):
    with pytest.raises(AuthorizationError):
        container.session_service.create(
            current_role=Role.STUDENT, created_by="alice", name="Physics", now=fixed_now
        )


@pytest.mark.parametrize("duration", [0, 181, "abc"])
def test_create_rejects_bad_duration(container, fixed_now, duration):
    with pytest.raises(ValidationError):
        container.session_service.create(
            current_role=Role.ADMIN, created_by="admin", name="Physics", duration=duration, now=fixed_now
        )


def test_create_requires_name(container, fixed_now):
    with pytest.raises(ValidationError):
        container.session_service.create(current_role=Role.ADMIN, created_by="admin", name="  ", now=fixed_now)


def test_get_active_returns_open_session(container, make_session, fixed_now):
    s = make_session(1, expires_in_minutes=5)

    assert container.session_service.get_active(now=fixed_now) == s


def test_get_active_closes_expired_session(container, make_session, sessions_repo, attendance_repo, fixed_now):
    make_session(1, expires_in_minutes=-1)

    assert container.session_service.get_active(now=fixed_now) is None
    assert sessions_repo.get_by_id(1).is_active is False
    assert len(attendance_repo.list_for_session(1)) == 2


def test_expire_by_admin_backfills_absent(container, make_session, sessions_repo, fixed_now):
    make_session(1, expires_in_minutes=10)

    absent = container.session_service.expire(current_role=Role.ADMIN, session_id=1, now=fixed_now)

    assert absent == 2
    assert sessions_repo.get_by_id(1).is_active is False


def test_expire_requires_admin_and_existing_session(container, make_session):
    make_session(1, expires_in_minutes=10)

    with pytest.raises(AuthorizationError):
        container.session_service.expire(current_role=Role.STUDENT, session_id=1)
    with pytest.raises(NotFoundError):
        container.session_service.expire(current_role=Role.ADMIN, session_id=99)


def test_attendance_code_format(make_session):
    s = make_session(7, expires_in_minutes=10, name="robotics")

    # fixed_now is 2026-03-02 09:00, opened 20 minutes earlier on the same day
    assert attendance_code(s) == "ROB72"


def test_find_active_by_code(container, make_session):
    s = make_session(7, expires_in_minutes=10)

    assert container.session_service.find_active_by_code("rob72") == s
    with pytest.raises(ValidationError):
        container.session_service.find_active_by_code("XYZ11")


def test_find_by_code_without_active_session(container, make_session):
    make_session(7, expires_in_minutes=10, active=False)

    with pytest.raises(NotFoundError):
        container.session_service.find_active_by_code("ROB72")


def test_get_by_qr_code(container, make_session):
    s = make_session(3, expires_in_minutes=10)

    assert container.session_service.get_by_qr_code(" qr-3 ") == s
    with pytest.raises(NotFoundError):
        container.session_service.get_by_qr_code("nope")


def test_qr_png_renders_payload(container, make_session):
    s = make_session(3, expires_in_minutes=10)

    png = container.session_service.qr_png(s)

    assert png.startswith(b"\x89PNG\r\n\x1a\n")
