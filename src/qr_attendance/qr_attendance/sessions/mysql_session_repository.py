from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import as_utc, to_db
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Session
from .repository import SessionRepository

_COLUMNS = (
    "session_id, name, created_by, created_at, expires_at, is_active, "
    "session_date, session_time, duration, qr_code"
)


def _to_session(r: dict) -> Session:
    return Session(
        session_id=int(r["session_id"]),
        name=r["name"],
        created_by=str(r["created_by"]),
        created_at=as_utc(r["created_at"]),
        expires_at=as_utc(r["expires_at"]),
        is_active=bool(r["is_active"]),
        date=r.get("session_date"),
        time=r.get("session_time"),
        duration=int(r["duration"]) if r.get("duration") is not None else None,
        qr_code=r.get("qr_code"),
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM sessions ORDER BY created_at DESC, session_id DESC")
            return [_to_session(r) for r in fetchall(cur)]

    def get_by_id(self, session_id: int) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM sessions WHERE session_id=%s", (int(session_id),))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def get_by_qr_code(self, qr_code: str) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM sessions WHERE qr_code=%s", (qr_code,))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def get_latest_active(self) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM sessions
                WHERE is_active=1
                ORDER BY created_at DESC, session_id DESC
                LIMIT 1
                """
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO sessions(name, created_by, created_at, expires_at, is_active,
                                     session_date, session_time, duration, qr_code)
                VALUES(%s,%s,%s,%s,1,%s,%s,%s,%s)
                """,
                (name, created_by, to_db(created_at), to_db(expires_at), date, time, duration, qr_code),
            )
            return int(cur.lastrowid)

    def deactivate(self, session_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE sessions SET is_active=0 WHERE session_id=%s AND is_active=1",
                (int(session_id),),
            )
            return cur.rowcount > 0
