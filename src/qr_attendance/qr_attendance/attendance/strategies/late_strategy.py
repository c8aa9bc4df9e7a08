from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ...sessions.model import Session
from .base import CheckInStrategy, StatusDecision


class LateStrategy(CheckInStrategy):
    def decide_checkin(self, *, now: datetime, session: Session) -> StatusDecision:
        return StatusDecision(AttendanceStatus.LATE)
