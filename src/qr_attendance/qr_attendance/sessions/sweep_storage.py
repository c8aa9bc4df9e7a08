from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..core.enums import AttendanceStatus, Role
from ..users.model import User
from ..users.repository import UserRepository
from .model import Session
from .repository import SessionRepository


class SweepStorage(Protocol):
    """The five storage calls the expiration sweeper needs.

    Every call raises StorageError when the store cannot be read or written.
    `mark_attendance` raises DuplicateAttendanceError for an existing
    (user_id, session_id) pair.
    """

    def get_all_sessions(self) -> Sequence[Session]:
        raise NotImplementedError

    def get_users_by_role(self, role: Role) -> Sequence[User]:
        raise NotImplementedError

    def get_attendance_by_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def mark_attendance(
        self,
        *,
        user_id: int,
        session_id: int,
        check_in_time: datetime,
        status: AttendanceStatus,
        name: Optional[str] = None,
    ) -> AttendanceRecord:
        raise NotImplementedError

    def expire_session(self, session_id: int) -> Optional[Session]:
        raise NotImplementedError


class RepositorySweepStorage(SweepStorage):
    """Adapter: SweepStorage on top of the feature repositories."""

    def __init__(self, sessions: SessionRepository, users: UserRepository, attendance: AttendanceRepository):
        self._sessions = sessions
        self._users = users
        self._attendance = attendance

    def get_all_sessions(self) -> Sequence[Session]:
        return self._sessions.list_all()

    def get_users_by_role(self, role: Role) -> Sequence[User]:
        return self._users.list_by_role(role)

    def get_attendance_by_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        return self._attendance.list_for_session(session_id)

    def mark_attendance(
        self,
        *,
        user_id: int,
        session_id: int,
        check_in_time: datetime,
        status: AttendanceStatus,
        name: Optional[str] = None,
    ) -> AttendanceRecord:
        attendance_id = self._attendance.create(
            user_id=user_id,
            session_id=session_id,
            check_in_time=check_in_time,
            status=status,
            user_name=name,
        )
        return AttendanceRecord(
            attendance_id=attendance_id,
            user_id=user_id,
            session_id=session_id,
            check_in_time=check_in_time,
            status=status,
            user_name=name,
        )

    def expire_session(self, session_id: int) -> Optional[Session]:
        self._sessions.deactivate(session_id)
        return self._sessions.get_by_id(session_id)
