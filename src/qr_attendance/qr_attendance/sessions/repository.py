from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Session


class SessionRepository(Protocol):
    def list_all(self) -> Sequence[Session]:
        """All sessions, newest first."""

        raise NotImplementedError

    def get_by_id(self, session_id: int) -> Optional[Session]:
        raise NotImplementedError

    def get_by_qr_code(self, qr_code: str) -> Optional[Session]:
        raise NotImplementedError

    def get_latest_active(self) -> Optional[Session]:
        raise NotImplementedError

    def create(
        self,
        *,
        name: str,
        created_by: str,
        created_at: datetime,
        expires_at: datetime,
        date: Optional[str] = None,
        time: Optional[str] = None,
        duration: Optional[int] = None,
        qr_code: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def deactivate(self, session_id: int) -> bool:
        """One-way active -> inactive transition. Returns False if already inactive."""

        raise NotImplementedError
