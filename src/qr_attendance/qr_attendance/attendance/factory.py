from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..sessions.model import Session
from .strategies.base import CheckInStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.present_strategy import PresentStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose the check-in strategy.

    `late_after_minutes=None` disables late marking entirely.
    """

    late_after_minutes: Optional[int] = None

    def for_checkin(self, *, now: datetime, session: Session) -> CheckInStrategy:
        if self.late_after_minutes is None:
            return PresentStrategy()

        if now <= session.created_at + timedelta(minutes=int(self.late_after_minutes)):
            return PresentStrategy()
        return LateStrategy()
