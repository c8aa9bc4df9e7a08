"""Background task that closes expired sessions.

For every active session past its `expires_at`, each student without an
attendance record gets an `absent` record stamped with the sweep time, then the
session is deactivated. A pass that hits a StorageError stops there; the next
pass starts over from a fresh read of the store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from ..common.datetime_utils import as_utc, now_utc
from ..core.constants import SWEEP_INTERVAL_SECONDS, SWEEP_JOB_ID
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import DuplicateAttendanceError, StorageError
from .model import Session
from .sweep_storage import SweepStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClosedSession:
    session_id: int
    absent_marked: int


@dataclass
class SweepReport:
    started_at: datetime
    active_sessions: int = 0
    closed: list[ClosedSession] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SessionExpirationSweeper:
    def __init__(
        self,
        storage: SweepStorage,
        *,
        interval_seconds: int = SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = now_utc,
    ):
        if int(interval_seconds) <= 0:
            raise ValueError("interval_seconds must be positive")
        self._storage = storage
        self._interval = int(interval_seconds)
        self._clock = clock
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def interval_seconds(self) -> int:
        return self._interval

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def close_session(self, session: Session, *, now: datetime) -> int:
        """Back-fill absent records for one session, then deactivate it.

        Returns how many absent records were created. Safe to repeat: students
        that already have a record are never written again.
        """

        students = self._storage.get_users_by_role(Role.STUDENT)
        recorded = {r.user_id for r in self._storage.get_attendance_by_session(session.session_id)}
        missing = [s for s in students if s.user_id not in recorded]

        marked = 0
        for student in missing:
            try:
                self._storage.mark_attendance(
                    user_id=student.user_id,
                    session_id=session.session_id,
                    check_in_time=now,
                    status=AttendanceStatus.ABSENT,
                    name=student.name,
                )
                marked += 1
            except DuplicateAttendanceError:
                # Written meanwhile by a check-in or another replica's sweep.
                logger.info(
                    "Session %s: user %s already recorded, skipping",
                    session.session_id,
                    student.user_id,
                )

        self._storage.expire_session(session.session_id)
        logger.info("Session %s closed, %s student(s) marked absent", session.session_id, marked)
        return marked

    def run_once(self, *, now: Optional[datetime] = None) -> SweepReport:
        now = as_utc(now) if now is not None else self._clock()
        report = SweepReport(started_at=now)

        try:
            active = [s for s in self._storage.get_all_sessions() if s.is_active]
            report.active_sessions = len(active)

            for session in active:
                if not session.is_expired(now):
                    continue
                absent = self.close_session(session, now=now)
                report.closed.append(ClosedSession(session_id=session.session_id, absent_marked=absent))
        except StorageError as exc:
            report.error = str(exc)
            logger.error("Sweep pass aborted after closing %s session(s): %s", len(report.closed), exc)
            return report

        if report.closed:
            logger.info("Sweep pass closed %s session(s)", len(report.closed))
        else:
            logger.debug("Sweep pass: %s active session(s), none expired", report.active_sessions)
        return report

    def _run_scheduled(self) -> None:
        try:
            self.run_once()
        finally:
            # Fixed delay: the next pass is due one interval after this one ends.
            scheduler = self._scheduler
            if scheduler is not None and scheduler.running:
                scheduler.reschedule_job(SWEEP_JOB_ID, trigger="interval", seconds=self._interval)

    def start(self) -> None:
        """Run one pass right away, then again `interval_seconds` after each pass ends."""

        if self.running:
            return

        scheduler = BackgroundScheduler(timezone=timezone.utc)
        scheduler.add_job(
            self._run_scheduled,
            "interval",
            seconds=self._interval,
            id=SWEEP_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(timezone.utc),
        )
        self._scheduler = scheduler
        scheduler.start()
        logger.info("Session sweeper started (every %ss)", self._interval)

    def shutdown(self, *, wait: bool = True) -> None:
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
        self._scheduler = None
        logger.info("Session sweeper stopped")
