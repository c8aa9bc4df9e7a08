from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import isoformat, now_utc
from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..sessions.model import Session
from ..sessions.service import SessionService
from ..users.repository import UserRepository
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CsvExport:
    filename: str
    content: bytes


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        sessions: SessionService,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
    ):
        self._attendance = attendance
        self._users = users
        self._sessions = sessions
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def _ensure_open(self, session: Session, now: datetime) -> None:
        if not session.is_active:
            raise ValidationError("Session is not active")
        if session.is_expired(now):
            self._sessions.close(session, now=now)
            raise ValidationError("Session has expired")

    def _record(self, *, user_id: int, session: Session, now: datetime) -> AttendanceRecord:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")

        self._ensure_open(session, now)

        if self._attendance.get_for_user_and_session(user.user_id, session.session_id):
            raise ConflictError("Attendance already marked for this session")

        strategy = self._factory.for_checkin(now=now, session=session)
        decision = strategy.decide_checkin(now=now, session=session)

        attendance_id = self._attendance.create(
            user_id=user.user_id,
            session_id=session.session_id,
            check_in_time=now,
            status=decision.status,
            user_name=user.name,
        )
        logger.info(
            "User %s marked %s for session %s",
            user.username,
            decision.status.value,
            session.session_id,
        )
        return AttendanceRecord(
            attendance_id=attendance_id,
            user_id=user.user_id,
            session_id=session.session_id,
            check_in_time=now,
            status=decision.status,
            user_name=user.name,
        )

    def check_in(
        self,
        user_id: int,
        *,
        session_id: Optional[int] = None,
        qr_code: Optional[str] = None,
        code: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        """Mark the caller present for a session picked by id, scanned QR payload or typed code."""

        now = now or now_utc()
        if session_id is not None:
            session = self._sessions.get(session_id)
        elif qr_code:
            session = self._sessions.get_by_qr_code(qr_code)
        elif code:
            session = self._sessions.find_active_by_code(code)
        else:
            raise ValidationError("Session ID is required")

        return self._record(user_id=user_id, session=session, now=now)

    def mark_for_user(
        self,
        *,
        current_role: Role,
        user_id: int,
        session_id: int,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        """Admin manual mark on behalf of a student."""

        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")
        return self._record(user_id=user_id, session=self._sessions.get(session_id), now=now or now_utc())

    def list_all(self, *, current_role: Role):
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")
        return self._attendance.list_all()

    def for_session(self, session_id: int, *, viewer_id: int, viewer_role: Role):
        """Admins see the whole session; students only their own record."""

        records = self._attendance.list_for_session(int(session_id))
        if viewer_role == Role.ADMIN:
            return records
        return [r for r in records if r.user_id == int(viewer_id)]

    def for_user(self, user_id: int, *, viewer_id: int, viewer_role: Role):
        if viewer_role != Role.ADMIN and int(viewer_id) != int(user_id):
            raise AuthorizationError("Forbidden")
        return self._attendance.list_for_user(int(user_id))

    def for_user_enriched(self, user_id: int) -> list[dict]:
        sessions = {s.session_id: s for s in self._sessions.list_all()}
        out = []
        for r in self._attendance.list_for_user(int(user_id)):
            row = r.to_dict()
            session = sessions.get(r.session_id)
            row["session"] = session.to_dict() if session else None
            out.append(row)
        return out

    def active_session_status(self, user_id: int, *, now: Optional[datetime] = None) -> dict:
        session = self._sessions.get_active(now=now)
        if not session:
            raise NotFoundError("No active session found")
        record = self._attendance.get_for_user_and_session(int(user_id), session.session_id)
        return {
            "activeSession": session.to_dict(),
            "isCheckedIn": record is not None,
            "user_id": int(user_id),
        }

    def export_session_csv(self, *, current_role: Role, session_id: int) -> CsvExport:
        """One row per student of the roster, with their status for the session."""

        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")

        session = self._sessions.get(session_id)
        by_user = {r.user_id: r for r in self._attendance.list_for_session(session.session_id)}

        out = io.StringIO()
        writer = csv.DictWriter(
            out,
            fieldnames=["session_id", "session_name", "user_id", "username", "name", "status", "check_in_time"],
        )
        writer.writeheader()
        for student in self._users.list_by_role(Role.STUDENT):
            record = by_user.get(student.user_id)
            writer.writerow(
                {
                    "session_id": session.session_id,
                    "session_name": session.name,
                    "user_id": student.user_id,
                    "username": student.username,
                    "name": student.name,
                    "status": record.status.value if record else "-",
                    "check_in_time": isoformat(record.check_in_time) if record else "",
                }
            )

        filename = f"attendance_session_{session.session_id}_{session.created_at.strftime('%Y%m%d')}.csv"
        return CsvExport(filename=filename, content=out.getvalue().encode("utf-8-sig"))

    def export_students_csv(self, *, current_role: Role) -> CsvExport:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")

        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=["user_id", "username", "name", "email", "status"])
        writer.writeheader()
        for student in self._users.list_by_role(Role.STUDENT):
            writer.writerow(
                {
                    "user_id": student.user_id,
                    "username": student.username,
                    "name": student.name,
                    "email": student.email,
                    "status": student.status.value,
                }
            )
        return CsvExport(filename="students.csv", content=out.getvalue().encode("utf-8-sig"))
