from __future__ import annotations

import io

import pytest

from src.qr_attendance.qr_attendance.main import create_app


@pytest.fixture
def app(container):
    return create_app(settings_module="config.testing", container=container)


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, username, password):
    return client.post("/api/login", json={"username": username, "password": password})


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok", "sweeper": False}


def test_login_and_me(client):
    resp = login(client, "alice", "alice123")
    assert resp.status_code == 200
    assert resp.get_json()["data"]["role"] == "student"

    me = client.get("/api/me").get_json()
    assert me["username"] == "alice"
    assert "password_hash" not in me


def test_login_accepts_legacy_user_id_field(client):
    resp = client.post("/api/login", json={"userId": "alice", "password": "alice123"})

    assert resp.status_code == 200


def test_bad_login_is_401(client):
    resp = login(client, "alice", "wrong")

    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_requires_login(client):
    assert client.get("/api/sessions").status_code == 401
    assert client.post("/api/attendance", json={"sessionId": 1}).status_code == 401


def test_student_cannot_create_session(client):
    login(client, "alice", "alice123")

    resp = client.post("/api/sessions", json={"name": "Physics"})

    assert resp.status_code == 403


def test_session_lifecycle(app):
    admin = app.test_client()
    student = app.test_client()
    login(admin, "admin", "admin123")
    login(student, "alice", "alice123")

    created = admin.post("/api/sessions", json={"name": "Physics", "duration": 15})
    assert created.status_code == 201
    session = created.get_json()
    assert session["duration"] == 15

    active = student.get("/api/sessions/active").get_json()
    assert active["success"] is True
    assert active["data"]["id"] == session["id"]

    checked = student.post("/api/attendance", json={"sessionId": session["id"]})
    assert checked.status_code == 201
    assert checked.get_json()["status"] == "present"

    again = student.post("/api/attendance", json={"qr_code": session["qr_code"]})
    assert again.status_code == 409

    status = student.get("/api/attendance/active-session").get_json()
    assert status["isCheckedIn"] is True

    expired = admin.put(f"/api/sessions/{session['id']}/expire")
    assert expired.status_code == 200
    assert expired.get_json()["absentStudents"] == 1

    assert student.get("/api/sessions/active").get_json() == {
        "success": False,
        "message": "No active session found",
    }

    rows = admin.get(f"/api/attendance/session/{session['id']}").get_json()
    assert sorted((r["user_id"], r["status"]) for r in rows) == [(2, "present"), (3, "absent")]

    own = student.get(f"/api/attendance/session/{session['id']}").get_json()
    assert [r["user_id"] for r in own] == [2]


def test_checkin_with_code(app, make_session):
    make_session(5, expires_in_minutes=60 * 24 * 365 * 10)
    student = app.test_client()
    login(student, "bob", "bob12345")

    code = student.get("/api/sessions/5/code").get_json()["attendanceCode"]
    resp = student.post("/api/attendance/code", json={"code": code})

    assert resp.status_code == 201
    assert resp.get_json()["session_id"] == 5


def test_checkin_on_inactive_session_is_400(client, make_session):
    make_session(5, expires_in_minutes=60, active=False)
    login(client, "bob", "bob12345")

    resp = client.post("/api/attendance", json={"sessionId": 5})

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Session is not active"


def test_unknown_session_is_404(client):
    login(client, "admin", "admin123")

    assert client.get("/api/sessions/999").status_code == 404
    assert client.get("/api/nope").status_code == 404


def test_export_csv(client, make_session):
    make_session(5, expires_in_minutes=60)
    login(client, "admin", "admin123")

    resp = client.get("/api/export/attendance/5.csv")

    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert "attendance_session_5_" in resp.headers["Content-Disposition"]
    assert b"alice" in resp.data


def test_qr_png(client, make_session):
    make_session(5, expires_in_minutes=60)
    login(client, "admin", "admin123")

    resp = client.get("/api/sessions/5/qr.png")

    assert resp.status_code == 200
    assert resp.data.startswith(b"\x89PNG")


def test_admin_manages_students(client, users_repo):
    login(client, "admin", "admin123")

    created = client.post(
        "/api/users",
        json={"username": "carol", "name": "Carol", "email": "carol@example.com", "password": "carol123"},
    )
    assert created.status_code == 201
    new_id = created.get_json()["id"]

    assert client.post(
        "/api/users",
        json={"username": "carol", "name": "Carol", "email": "carol@example.com", "password": "carol123"},
    ).status_code == 409

    assert client.delete(f"/api/users/{new_id}").status_code == 204
    assert users_repo.get_by_id(new_id) is None
    assert client.delete("/api/users/1").status_code == 400


def test_non_numeric_session_id_is_400(client, make_session):
    make_session(5, expires_in_minutes=60)
    login(client, "alice", "alice123")

    resp = client.post("/api/attendance", json={"sessionId": "abc"})

    assert resp.status_code == 400
    assert resp.get_json() == {"success": False, "message": "Session ID must be a number"}


def test_manual_mark_with_bad_ids_is_400(client, make_session):
    make_session(5, expires_in_minutes=60)
    login(client, "admin", "admin123")

    bad_user = client.post("/api/attendance", json={"manual": True, "userId": "bob", "sessionId": 5})
    missing_session = client.post("/api/attendance", json={"manual": True, "userId": 3})

    assert bad_user.status_code == 400
    assert missing_session.status_code == 400
    assert missing_session.get_json()["message"] == "Session ID is required"


def test_import_students_from_uploaded_file(client, users_repo):
    login(client, "admin", "admin123")
    body = "username,name,email,password\ncarol,Carol,carol@example.com,carol123\n".encode("utf-8-sig")

    resp = client.post(
        "/api/users/import",
        data={"file": (io.BytesIO(body), "roster.csv")},
        content_type="multipart/form-data",
    )

    assert resp.status_code == 200
    assert resp.get_json()["created"] == 1
    assert users_repo.get_by_username("carol") is not None


def test_import_rejects_non_utf8_file(client):
    login(client, "admin", "admin123")
    body = "username,name,email,password\nzé,Zé,ze@example.com,secret123\n".encode("latin-1")

    resp = client.post(
        "/api/users/import",
        data={"file": (io.BytesIO(body), "roster.csv")},
        content_type="multipart/form-data",
    )

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "CSV must be UTF-8"
