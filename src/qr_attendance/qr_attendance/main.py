from __future__ import annotations

import atexit
import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.log_config import DEFAULT_LOG_FORMAT, configure_logging
from .common.web import register_error_handlers
from .container import Container, build_container
from .core.constants import DEFAULT_LATE_AFTER_MINUTES
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables
from .sessions.controller import register as register_sessions
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def create_app(*, settings_module: Optional[str] = None, container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)

    configure_logging(
        getattr(settings, "LOG_LEVEL", "INFO"),
        getattr(settings, "LOG_FORMAT", DEFAULT_LOG_FORMAT),
    )

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SECURE"] = bool(getattr(settings, "SESSION_COOKIE_SECURE", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_users(db_config)

        late_after = getattr(settings, "LATE_AFTER_MINUTES", DEFAULT_LATE_AFTER_MINUTES)
        container = build_container(
            db_config=db_config,
            sweep_interval_seconds=int(getattr(settings, "SWEEP_INTERVAL_SECONDS", 60)),
            default_session_minutes=int(getattr(settings, "DEFAULT_SESSION_MINUTES", 20)),
            late_after_minutes=int(late_after) if late_after is not None else None,
        )

    app.extensions["qr_attendance"] = container

    register_error_handlers(app)
    register_users(app, container)
    register_sessions(app, container)
    register_attendance(app, container)

    @app.route("/api", endpoint="api_index")
    def api_index():
        return jsonify(
            {
                "message": "QR Attendance API",
                "endpoints": {
                    "auth": ["/api/login", "/api/logout", "/api/me"],
                    "sessions": ["/api/sessions", "/api/sessions/active", "/api/sessions/<id>"],
                    "attendance": ["/api/attendance", "/api/attendance/me", "/api/attendance/active-session"],
                },
            }
        )

    @app.route("/health", endpoint="health")
    def health():
        return jsonify({"status": "ok", "sweeper": container.sweeper.running})

    if bool(getattr(settings, "SWEEPER_ENABLED", True)):
        container.sweeper.start()
        atexit.register(container.sweeper.shutdown, wait=False)

    return app
