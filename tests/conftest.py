from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from src.qr_attendance.qr_attendance.container import wire
from src.qr_attendance.qr_attendance.core.enums import Role
from src.qr_attendance.qr_attendance.sessions.model import Session
from tests.fakes import InMemoryAttendance, InMemorySessions, InMemoryUsers, make_user


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def users_repo() -> InMemoryUsers:
    return InMemoryUsers(
        [
            make_user(1, "admin", role=Role.ADMIN, password="admin123"),
            make_user(2, "alice", password="alice123"),
            make_user(3, "bob", password="bob12345"),
        ]
    )


@pytest.fixture
def sessions_repo() -> InMemorySessions:
    return InMemorySessions()


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def container(users_repo, sessions_repo, attendance_repo):
    return wire(
        users_repo=users_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        late_after_minutes=10,
    )


@pytest.fixture
def make_session(sessions_repo, fixed_now):
    def _make(session_id: int, *, expires_in_minutes: float, opened_minutes_ago: float = 20, active: bool = True, name="Robotics"):
        created_at = fixed_now - timedelta(minutes=opened_minutes_ago)
        return sessions_repo.add(
            Session(
                session_id=session_id,
                name=name,
                created_by="admin",
                created_at=created_at,
                expires_at=fixed_now + timedelta(minutes=expires_in_minutes),
                is_active=active,
                qr_code=f"qr-{session_id}",
            )
        )

    return _make
