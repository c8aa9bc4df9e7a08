from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..common.web import admin_required, current_role, current_user_id, error_response, login_required
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/login", methods=["POST"], endpoint="api_login")
    def login():
        data = request.get_json(silent=True) or request.form or {}
        if not data:
            return error_response("Empty request body", 400)

        # Older clients send userId / user_id instead of username.
        username = data.get("username") or data.get("userId") or data.get("user_id") or ""
        password = data.get("password") or ""

        s_user = container.auth_service.authenticate(username, password)

        session.clear()
        session["user_id"] = s_user.user_id
        session["username"] = s_user.username
        session["name"] = s_user.name
        session["role"] = s_user.role.value

        return jsonify(
            {
                "success": True,
                "data": {
                    "id": s_user.user_id,
                    "username": s_user.username,
                    "name": s_user.name,
                    "role": s_user.role.value,
                },
            }
        )

    @app.route("/api/logout", methods=["POST"], endpoint="api_logout")
    def logout():
        session.clear()
        return jsonify({"success": True, "message": "Logged out successfully"})

    @app.route("/api/me", endpoint="api_me")
    @login_required
    def me():
        user = container.user_service.get(current_user_id())
        return jsonify(user.public_view())

    @app.route("/api/users", methods=["GET"], endpoint="api_users")
    @admin_required
    def list_users():
        return jsonify([u.public_view() for u in container.user_service.list_all()])

    @app.route("/api/users/students", methods=["GET"], endpoint="api_students")
    @admin_required
    def list_students():
        return jsonify([u.public_view() for u in container.user_service.list_students()])

    @app.route("/api/users", methods=["POST"], endpoint="api_users_create")
    @admin_required
    def create_user():
        data = request.get_json(silent=True) or {}
        user_id = container.user_service.create_account(
            current_role=current_role(),
            username=data.get("username") or data.get("user_id") or "",
            name=data.get("name") or "",
            email=data.get("email") or "",
            password=data.get("password") or "",
            role=data.get("role") or "student",
            status=data.get("status") or "active",
        )
        return jsonify(container.user_service.get(user_id).public_view()), 201

    @app.route("/api/users/<int:user_id>", methods=["PUT"], endpoint="api_users_update")
    @admin_required
    def update_user(user_id: int):
        data = request.get_json(silent=True) or {}
        user = container.user_service.update_account(
            current_role=current_role(),
            user_id=user_id,
            name=data.get("name"),
            email=data.get("email"),
            role=data.get("role"),
            status=data.get("status"),
            password=data.get("password"),
        )
        return jsonify(user.public_view())

    @app.route("/api/users/<int:user_id>", methods=["DELETE"], endpoint="api_users_delete")
    @admin_required
    def delete_user(user_id: int):
        container.user_service.delete_user(current_role=current_role(), user_id=user_id)
        return "", 204

    @app.route("/api/users/import", methods=["POST"], endpoint="api_users_import")
    @admin_required
    def import_users():
        upload = request.files.get("file")
        raw = upload.stream.read() if upload is not None else request.get_data()
        try:
            content = raw.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise ValidationError("CSV must be UTF-8")
        if not content.strip():
            return error_response("CSV file is required", 400)

        result = container.user_service.import_students_csv(current_role=current_role(), content=content)
        return jsonify(
            {
                "success": True,
                "created": result.created,
                "skipped": result.skipped,
                "errors": result.errors,
            }
        )
