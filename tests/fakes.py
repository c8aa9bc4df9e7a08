from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

from werkzeug.security import generate_password_hash

from src.qr_attendance.qr_attendance.attendance.model import AttendanceRecord
from src.qr_attendance.qr_attendance.core.enums import AttendanceStatus, Role, UserStatus
from src.qr_attendance.qr_attendance.core.exceptions import DuplicateAttendanceError
from src.qr_attendance.qr_attendance.sessions.model import Session
from src.qr_attendance.qr_attendance.users.model import User


def make_user(user_id: int, username: str, *, role=Role.STUDENT, password="secret123", status=UserStatus.ACTIVE) -> User:
    return User(
        user_id=user_id,
        username=username,
        name=username.title(),
        email=f"{username.lower()}@example.com",
        password_hash=generate_password_hash(password),
        role=role,
        status=status,
    )


class InMemoryUsers:
    def __init__(self, users=()):
        self._by_id: dict[int, User] = {u.user_id: u for u in users}

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._by_id.get(int(user_id))

    def get_by_username(self, username: str) -> Optional[User]:
        for u in self._by_id.values():
            if u.username == username:
                return u
        return None

    def list_all(self):
        return sorted(self._by_id.values(), key=lambda u: u.user_id)

    def list_by_role(self, role: Role):
        return [u for u in self.list_all() if u.role == role]

    def create_user(self, *, username, name, email, password_hash, role, status=UserStatus.ACTIVE) -> int:
        user_id = max(self._by_id, default=0) + 1
        self._by_id[user_id] = User(
            user_id=user_id,
            username=username,
            name=name,
            email=email,
            password_hash=password_hash,
            role=role,
            status=status,
        )
        return user_id

    def update_user(self, *, user_id, name, email, role, status, password_hash=None) -> bool:
        user = self._by_id.get(int(user_id))
        if not user:
            return False
        self._by_id[user.user_id] = replace(
            user,
            name=name,
            email=email,
            role=role,
            status=status,
            password_hash=password_hash or user.password_hash,
        )
        return True

    def delete_by_id(self, user_id: int) -> bool:
        return self._by_id.pop(int(user_id), None) is not None


class InMemorySessions:
    def __init__(self, sessions=()):
        self._by_id: dict[int, Session] = {s.session_id: s for s in sessions}

    def add(self, session: Session) -> Session:
        self._by_id[session.session_id] = session
        return session

    def list_all(self):
        return sorted(self._by_id.values(), key=lambda s: (s.created_at, s.session_id), reverse=True)

    def get_by_id(self, session_id: int) -> Optional[Session]:
        return self._by_id.get(int(session_id))

    def get_by_qr_code(self, qr_code: str) -> Optional[Session]:
        for s in self._by_id.values():
            if s.qr_code == qr_code:
                return s
        return None

    def get_latest_active(self) -> Optional[Session]:
        for s in self.list_all():
            if s.is_active:
                return s
        return None

    def create(self, *, name, created_by, created_at, expires_at, date=None, time=None, duration=None, qr_code=None) -> int:
        session_id = max(self._by_id, default=0) + 1
        self._by_id[session_id] = Session(
            session_id=session_id,
            name=name,
            created_by=created_by,
            created_at=created_at,
            expires_at=expires_at,
            is_active=True,
            date=date,
            time=time,
            duration=duration,
            qr_code=qr_code,
        )
        return session_id

    def deactivate(self, session_id: int) -> bool:
        s = self._by_id.get(int(session_id))
        if not s or not s.is_active:
            return False
        self._by_id[s.session_id] = replace(s, is_active=False)
        return True


class InMemoryAttendance:
    """Enforces the (user_id, session_id) unique key like the real table."""

    def __init__(self):
        self._records: dict[tuple[int, int], AttendanceRecord] = {}
        self._id = 0

    def add(self, *, user_id: int, session_id: int, check_in_time: datetime, status=AttendanceStatus.PRESENT):
        self.create(user_id=user_id, session_id=session_id, check_in_time=check_in_time, status=status)
        return self._records[(user_id, session_id)]

    def list_all(self):
        return sorted(self._records.values(), key=lambda r: r.check_in_time, reverse=True)

    def list_for_session(self, session_id: int):
        return [r for r in self._records.values() if r.session_id == int(session_id)]

    def list_for_user(self, user_id: int):
        return [r for r in self.list_all() if r.user_id == int(user_id)]

    def get_for_user_and_session(self, user_id: int, session_id: int) -> Optional[AttendanceRecord]:
        return self._records.get((int(user_id), int(session_id)))

    def create(self, *, user_id, session_id, check_in_time, status, user_name=None) -> int:
        key = (int(user_id), int(session_id))
        if key in self._records:
            raise DuplicateAttendanceError(f"duplicate {key}")
        self._id += 1
        self._records[key] = AttendanceRecord(
            attendance_id=self._id,
            user_id=int(user_id),
            session_id=int(session_id),
            check_in_time=check_in_time,
            status=status,
            user_name=user_name,
        )
        return self._id
