"""Run a single expired-session sweep pass (e.g. from cron when SWEEPER_ENABLED=0)."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.qr_attendance.qr_attendance.common.log_config import configure_logging
from src.qr_attendance.qr_attendance.container import build_container


def main() -> int:
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(db_config=settings.DB_CONFIG)
    report = container.sweeper.run_once()

    for closed in report.closed:
        print(f"session {closed.session_id}: closed, {closed.absent_marked} absent")
    if not report.ok:
        print(f"FAILED: {report.error}", file=sys.stderr)
        return 1
    print(f"OK: {report.active_sessions} active session(s) checked, {len(report.closed)} closed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
