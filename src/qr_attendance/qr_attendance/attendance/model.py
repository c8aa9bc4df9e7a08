from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import isoformat
from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: the fact that a user was present/absent/late for a session."""

    attendance_id: int
    user_id: int
    session_id: int
    check_in_time: datetime
    status: AttendanceStatus
    user_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "user_id": self.user_id,
            "session_id": self.session_id,
            "name": self.user_name,
            "check_in_time": isoformat(self.check_in_time),
            "status": self.status.value,
        }
