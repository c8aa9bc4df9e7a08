from __future__ import annotations

import logging
from functools import wraps

from flask import Flask, jsonify, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
)


def error_response(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def current_role() -> Role:
    return Role(session.get("role"))


def current_user_id() -> int:
    return int(session["user_id"])


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response("Not authenticated", 401)
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response("Not authenticated", 401)
        if session.get("role") != Role.ADMIN.value:
            logger.warning("Admin authorization failed for user %s", session.get("user_id"))
            return error_response("Forbidden - Admin access required", 403)
        return view(*args, **kwargs)

    return wrapper


def register_error_handlers(app: Flask) -> None:
    """Translate domain/storage errors raised by services into JSON responses."""

    for exc_type, status in _STATUS_BY_ERROR:

        def handler(e, _status=status):
            return error_response(str(e), _status)

        app.register_error_handler(exc_type, handler)

    @app.errorhandler(StorageError)
    def storage_error(e):
        logger.error("Storage failure on request: %s", e)
        if app.config.get("DEBUG"):
            return error_response(f"Storage error: {e}", 500)
        return error_response("Internal server error", 500)

    @app.errorhandler(404)
    def not_found(e):
        return error_response("API endpoint does not exist", 404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return error_response("Method not allowed", 405)
