from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_LATE_AFTER_MINUTES, DEFAULT_SESSION_MINUTES, SWEEP_INTERVAL_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository
from .sessions.service import SessionService
from .sessions.sweep_storage import RepositorySweepStorage
from .sessions.sweeper import SessionExpirationSweeper
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    sessions_repo: SessionRepository
    attendance_repo: AttendanceRepository

    sweeper: SessionExpirationSweeper
    auth_service: AuthService
    user_service: UserService
    session_service: SessionService
    attendance_service: AttendanceService


def wire(
    *,
    users_repo: UserRepository,
    sessions_repo: SessionRepository,
    attendance_repo: AttendanceRepository,
    sweep_interval_seconds: int = SWEEP_INTERVAL_SECONDS,
    default_session_minutes: int = DEFAULT_SESSION_MINUTES,
    late_after_minutes: Optional[int] = DEFAULT_LATE_AFTER_MINUTES,
) -> Container:
    """Build services on top of any repository implementations (MySQL or in-memory)."""

    sweeper = SessionExpirationSweeper(
        RepositorySweepStorage(sessions_repo, users_repo, attendance_repo),
        interval_seconds=sweep_interval_seconds,
    )
    session_service = SessionService(sessions_repo, sweeper, default_minutes=default_session_minutes)
    attendance_service = AttendanceService(
        attendance_repo,
        users_repo,
        session_service,
        strategy_factory=AttendanceStrategyFactory(late_after_minutes=late_after_minutes),
    )

    return Container(
        users_repo=users_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        sweeper=sweeper,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        session_service=session_service,
        attendance_service=attendance_service,
    )


def build_container(
    *,
    db_config: dict,
    sweep_interval_seconds: int = SWEEP_INTERVAL_SECONDS,
    default_session_minutes: int = DEFAULT_SESSION_MINUTES,
    late_after_minutes: Optional[int] = DEFAULT_LATE_AFTER_MINUTES,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_settings(db_config))

    return wire(
        users_repo=MySQLUserRepository(conn),
        sessions_repo=MySQLSessionRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        sweep_interval_seconds=sweep_interval_seconds,
        default_session_minutes=default_session_minutes,
        late_after_minutes=late_after_minutes,
    )
