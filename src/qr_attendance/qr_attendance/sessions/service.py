from __future__ import annotations

import io
import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional

import qrcode

from ..common.datetime_utils import now_utc
from ..common.validators import optional_iso_date, require_int_range, require_non_empty
from ..core.constants import DEFAULT_SESSION_MINUTES, MAX_SESSION_MINUTES, MIN_SESSION_MINUTES
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import Session
from .repository import SessionRepository
from .sweeper import SessionExpirationSweeper

logger = logging.getLogger(__name__)


def attendance_code(session: Session) -> str:
    """Typed fallback for a QR scan: NAM + id + day-of-month of creation."""
    return f"{session.name[:3].upper()}{session.session_id}{session.created_at.day}"


class SessionService:
    def __init__(
        self,
        sessions: SessionRepository,
        sweeper: SessionExpirationSweeper,
        *,
        default_minutes: int = DEFAULT_SESSION_MINUTES,
    ):
        self._sessions = sessions
        self._sweeper = sweeper
        self._default_minutes = int(default_minutes)

    def list_all(self):
        return self._sessions.list_all()

    def get(self, session_id: int) -> Session:
        session = self._sessions.get_by_id(int(session_id))
        if not session:
            raise NotFoundError("Session not found")
        return session

    def get_by_qr_code(self, qr_code: str) -> Session:
        session = self._sessions.get_by_qr_code(qr_code.strip()) if qr_code and qr_code.strip() else None
        if not session:
            raise NotFoundError("Invalid QR code")
        return session

    def find_active_by_code(self, code: str) -> Session:
        code = require_non_empty(code, "Attendance code")
        active = [s for s in self._sessions.list_all() if s.is_active]
        if not active:
            raise NotFoundError("No active sessions found")

        for session in active:
            if attendance_code(session) == code.upper():
                return session
        raise ValidationError("Invalid attendance code")

    def close(self, session: Session, *, now: Optional[datetime] = None) -> int:
        return self._sweeper.close_session(session, now=now or now_utc())

    def get_active(self, *, now: Optional[datetime] = None) -> Optional[Session]:
        """Newest active session; an expired one is closed on the spot."""

        now = now or now_utc()
        session = self._sessions.get_latest_active()
        if not session:
            return None

        if session.is_expired(now):
            logger.info("Active session %s found but expired, closing", session.session_id)
            self.close(session, now=now)
            return None
        return session

    def create(
        self,
        *,
        current_role: Role,
        created_by: str,
        name: str,
        duration=None,
        date: Optional[str] = None,
        time: Optional[str] = None,
        expires_after_ms=None,
        now: Optional[datetime] = None,
    ) -> Session:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")

        now = now or now_utc()
        name = require_non_empty(name, "Session name")
        date = optional_iso_date(date, "Date")

        if duration is not None and duration != "":
            duration = require_int_range(duration, "Duration", low=MIN_SESSION_MINUTES, high=MAX_SESSION_MINUTES)
            lifetime = timedelta(minutes=duration)
        elif expires_after_ms:
            ms = require_int_range(expires_after_ms, "expires_after", low=1, high=MAX_SESSION_MINUTES * 60_000)
            lifetime = timedelta(milliseconds=ms)
            duration = None
        else:
            duration = self._default_minutes
            lifetime = timedelta(minutes=duration)

        # Only one session is open at a time.
        for previous in [s for s in self._sessions.list_all() if s.is_active]:
            logger.info("Closing session %s before opening a new one", previous.session_id)
            self.close(previous, now=now)

        session_id = self._sessions.create(
            name=name,
            created_by=str(created_by),
            created_at=now,
            expires_at=now + lifetime,
            date=date,
            time=time.strip() if time else None,
            duration=duration,
            qr_code=uuid.uuid4().hex,
        )
        logger.info("Session %s (%s) opened by %s until %s", session_id, name, created_by, now + lifetime)
        return self.get(session_id)

    def expire(self, *, current_role: Role, session_id: int, now: Optional[datetime] = None) -> int:
        """Admin close: back-fill absent records, then deactivate."""

        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")

        session = self.get(session_id)
        return self.close(session, now=now)

    def qr_png(self, session: Session) -> bytes:
        """PNG of the session's QR payload (what students scan)."""

        if not session.qr_code:
            raise ValidationError("Session has no QR code")

        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=2,
        )
        qr.add_data(session.qr_code)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()
