from __future__ import annotations

import io

from flask import Flask, jsonify, request, send_file

from ..common.validators import require_int
from ..common.web import admin_required, current_role, current_user_id, error_response, login_required
from ..container import Container
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    def _send_csv(export):
        return send_file(
            io.BytesIO(export.content),
            mimetype="text/csv",
            as_attachment=True,
            download_name=export.filename,
        )

    @app.route("/api/attendance", methods=["GET"], endpoint="api_attendance")
    @admin_required
    def list_attendance():
        records = container.attendance_service.list_all(current_role=current_role())
        return jsonify([r.to_dict() for r in records])

    @app.route("/api/attendance", methods=["POST"], endpoint="api_attendance_mark")
    @login_required
    def mark_attendance():
        data = request.get_json(silent=True) or {}
        session_id = data.get("sessionId") or data.get("session_id")
        qr_code = data.get("qr_code") or data.get("code_payload")

        if data.get("manual") and current_role() == Role.ADMIN:
            record = container.attendance_service.mark_for_user(
                current_role=current_role(),
                user_id=require_int(data.get("userId") or data.get("user_id"), "User ID"),
                session_id=require_int(session_id, "Session ID"),
            )
            return jsonify(record.to_dict()), 201

        if not session_id and not qr_code:
            return error_response("Session ID is required", 400)

        record = container.attendance_service.check_in(
            current_user_id(),
            session_id=require_int(session_id, "Session ID") if session_id else None,
            qr_code=qr_code,
        )
        return jsonify(record.to_dict()), 201

    @app.route("/api/attendance/code", methods=["POST"], endpoint="api_attendance_code")
    @login_required
    def mark_with_code():
        data = request.get_json(silent=True) or {}
        code = (data.get("code") or "").strip()
        if not code:
            return error_response("Attendance code is required", 400)
        record = container.attendance_service.check_in(current_user_id(), code=code)
        return jsonify(record.to_dict()), 201

    @app.route("/api/attendance/me", methods=["GET"], endpoint="api_attendance_me")
    @login_required
    def my_attendance():
        return jsonify(container.attendance_service.for_user_enriched(current_user_id()))

    @app.route("/api/attendance/session/<int:session_id>", methods=["GET"], endpoint="api_attendance_session")
    @login_required
    def session_attendance(session_id: int):
        records = container.attendance_service.for_session(
            session_id, viewer_id=current_user_id(), viewer_role=current_role()
        )
        return jsonify([r.to_dict() for r in records])

    @app.route("/api/attendance/user/<int:user_id>", methods=["GET"], endpoint="api_attendance_user")
    @login_required
    def user_attendance(user_id: int):
        records = container.attendance_service.for_user(
            user_id, viewer_id=current_user_id(), viewer_role=current_role()
        )
        return jsonify([r.to_dict() for r in records])

    @app.route("/api/attendance/active-session", methods=["GET"], endpoint="api_attendance_active")
    @login_required
    def active_session_status():
        return jsonify(container.attendance_service.active_session_status(current_user_id()))

    @app.route("/api/export/attendance/<int:session_id>.csv", methods=["GET"], endpoint="api_export_attendance")
    @admin_required
    def export_attendance(session_id: int):
        return _send_csv(
            container.attendance_service.export_session_csv(current_role=current_role(), session_id=session_id)
        )

    @app.route("/api/export/students.csv", methods=["GET"], endpoint="api_export_students")
    @admin_required
    def export_students():
        return _send_csv(container.attendance_service.export_students_csv(current_role=current_role()))
