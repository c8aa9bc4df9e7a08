from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import isoformat


@dataclass(frozen=True)
class Session:
    """Domain entity: a time-boxed attendance window.

    `expires_at` is fixed at creation; `is_active` only ever goes True -> False.
    """

    session_id: int
    name: str
    created_by: str
    created_at: datetime
    expires_at: datetime
    is_active: bool = True
    date: Optional[str] = None
    time: Optional[str] = None
    duration: Optional[int] = None
    qr_code: Optional[str] = None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def duration_minutes(self) -> int:
        if self.duration:
            return int(self.duration)
        return round((self.expires_at - self.created_at).total_seconds() / 60)

    def to_dict(self) -> dict:
        return {
            "id": self.session_id,
            "name": self.name,
            "created_by": self.created_by,
            "created_at": isoformat(self.created_at),
            "expires_at": isoformat(self.expires_at),
            "is_active": self.is_active,
            "date": self.date or self.created_at.strftime("%Y-%m-%d"),
            "time": self.time or self.created_at.strftime("%H:%M"),
            "duration": self.duration_minutes(),
            "qr_code": self.qr_code,
        }
