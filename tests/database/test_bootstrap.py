from pathlib import Path

import pytest

from config import get_settings_module
from src.qr_attendance.qr_attendance.database.bootstrap import _strip_create_db_and_use, iter_sql_statements
from src.qr_attendance.qr_attendance.database.connection import DBConfig

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def test_schema_splits_into_three_tables():
    sql = _strip_create_db_and_use(SCHEMA.read_text(encoding="utf-8"))

    stmts = list(iter_sql_statements(sql))

    assert [s.split("(")[0].split()[-1] for s in stmts] == ["users", "sessions", "attendance_records"]
    assert "uq_attendance_user_session (user_id, session_id)" in stmts[2]


def test_splitter_keeps_semicolons_inside_quotes_and_drops_comments():
    sql = "-- seed\nINSERT INTO t VALUES ('a;b');\n  -- another\nINSERT INTO t VALUES (\"c;d\")"

    assert list(iter_sql_statements(sql)) == [
        "INSERT INTO t VALUES ('a;b')",
        'INSERT INTO t VALUES ("c;d")',
    ]


def test_db_config_from_settings():
    cfg = DBConfig.from_settings({"host": "db", "user": "app", "password": None, "database": "qr"})

    assert (cfg.host, cfg.port, cfg.password, cfg.connect_timeout) == ("db", 3306, "", 10)


@pytest.mark.parametrize(
    "env, module",
    [("production", "config.production"), ("test", "config.testing"), ("whatever", "config.development")],
)
def test_settings_module_from_app_env(monkeypatch, env, module):
    monkeypatch.setenv("APP_ENV", env)

    assert get_settings_module() == module
