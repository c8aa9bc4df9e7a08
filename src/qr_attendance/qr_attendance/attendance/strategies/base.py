from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ...core.enums import AttendanceStatus
from ...sessions.model import Session


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus


class CheckInStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide a check-in status."""

    @abstractmethod
    def decide_checkin(self, *, now: datetime, session: Session) -> StatusDecision:
        raise NotImplementedError
