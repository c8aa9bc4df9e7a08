from __future__ import annotations

import io

from flask import Flask, jsonify, request, send_file, session

from ..common.web import admin_required, current_role, error_response, login_required
from ..container import Container
from .service import attendance_code


def register(app: Flask, container: Container) -> None:
    @app.route("/api/sessions", methods=["GET"], endpoint="api_sessions")
    @login_required
    def list_sessions():
        return jsonify([s.to_dict() for s in container.session_service.list_all()])

    @app.route("/api/sessions", methods=["POST"], endpoint="api_sessions_create")
    @admin_required
    def create_session():
        data = request.get_json(silent=True) or {}
        created = container.session_service.create(
            current_role=current_role(),
            created_by=session.get("username") or str(session["user_id"]),
            name=data.get("name") or "",
            duration=data.get("duration"),
            date=data.get("date"),
            time=data.get("time"),
            expires_after_ms=data.get("expires_after"),
        )
        return jsonify(created.to_dict()), 201

    @app.route("/api/sessions/active", methods=["GET"], endpoint="api_sessions_active")
    def active_session():
        active = container.session_service.get_active()
        if not active:
            return jsonify({"success": False, "message": "No active session found"})
        return jsonify({"success": True, "data": active.to_dict()})

    @app.route("/api/sessions/<int:session_id>", methods=["GET"], endpoint="api_session_detail")
    @login_required
    def session_detail(session_id: int):
        return jsonify(container.session_service.get(session_id).to_dict())

    @app.route("/api/sessions/<int:session_id>/expire", methods=["PUT", "POST"], endpoint="api_session_expire")
    @admin_required
    def expire_session(session_id: int):
        absent = container.session_service.expire(current_role=current_role(), session_id=session_id)
        return jsonify({"message": "Session expired successfully", "absentStudents": absent})

    @app.route("/api/sessions/<int:session_id>/code", methods=["GET"], endpoint="api_session_code")
    @login_required
    def session_code(session_id: int):
        s = container.session_service.get(session_id)
        if not s.is_active:
            return error_response("Session is not active", 400)
        return jsonify({"attendanceCode": attendance_code(s), "expiresAt": s.to_dict()["expires_at"]})

    @app.route("/api/sessions/<int:session_id>/qr.png", methods=["GET"], endpoint="api_session_qr")
    @admin_required
    def session_qr(session_id: int):
        png = container.session_service.qr_png(container.session_service.get(session_id))
        response = send_file(io.BytesIO(png), mimetype="image/png")
        response.headers["Cache-Control"] = "no-store"
        return response
