from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_email, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role, UserStatus
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    username: str
    name: str
    role: Role


@dataclass
class ImportResult:
    created: int = 0
    skipped: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def _parse_role(value) -> Role:
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value or Role.STUDENT.value).strip().lower())
    except ValueError:
        raise ValidationError("Invalid role")


def _parse_status(value) -> UserStatus:
    if isinstance(value, UserStatus):
        return value
    try:
        return UserStatus(str(value or UserStatus.ACTIVE.value).strip().lower())
    except ValueError:
        raise ValidationError("Invalid status")


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, username: str, password: str) -> SessionUser:
        if not username or not password:
            raise ValidationError("Both username and password are required")

        user = self._users.get_by_username(username.strip())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid username or password")

        try:
            ok = check_password_hash(user.password_hash, password)
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid username or password")

        logger.info("User %s logged in", user.username)
        return SessionUser(user_id=user.user_id, username=user.username, name=user.name, role=user.role)


class UserService:
    """Use case: manage the roster (admin)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def get(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def list_all(self):
        return self._users.list_all()

    def list_students(self):
        return self._users.list_by_role(Role.STUDENT)

    def create_account(
        self,
        *,
        current_role: Role,
        username: str,
        name: str,
        email: str,
        password: str,
        role=Role.STUDENT,
        status=UserStatus.ACTIVE,
    ) -> int:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")

        username = require_non_empty(username, "Username")
        name = require_non_empty(name, "Name")
        email = require_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        role = _parse_role(role)
        status = _parse_status(status)

        if self._users.get_by_username(username):
            raise ConflictError("Username already exists")

        user_id = self._users.create_user(
            username=username,
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
            status=status,
        )
        logger.info("Created %s account %s (id=%s)", role.value, username, user_id)
        return user_id

    def update_account(
        self,
        *,
        current_role: Role,
        user_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
        role=None,
        status=None,
        password: Optional[str] = None,
    ) -> User:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")

        user = self.get(user_id)
        password_hash = None
        if password:
            require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
            password_hash = generate_password_hash(password)

        self._users.update_user(
            user_id=user.user_id,
            name=require_non_empty(name, "Name") if name is not None else user.name,
            email=require_email(email) if email is not None else user.email,
            role=_parse_role(role) if role is not None else user.role,
            status=_parse_status(status) if status is not None else user.status,
            password_hash=password_hash,
        )
        return self.get(user.user_id)

    def delete_user(self, *, current_role: Role, user_id: int) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")

        user = self.get(user_id)
        if user.role == Role.ADMIN:
            raise ValidationError("Admin accounts cannot be deleted")

        if not self._users.delete_by_id(user.user_id):
            raise NotFoundError("User not found")
        logger.info("Deleted user %s (id=%s)", user.username, user.user_id)

    def import_students_csv(self, *, current_role: Role, content: str) -> ImportResult:
        """Bulk-create students from CSV with a header row.

        Required columns: username, name, email, password. Rows whose username
        already exists are skipped; invalid rows are reported, not fatal.
        """

        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")

        reader = csv.DictReader(io.StringIO(content.lstrip("\ufeff")))
        missing = {"username", "name", "email", "password"} - set(reader.fieldnames or [])
        if missing:
            raise ValidationError(f"Missing CSV columns: {', '.join(sorted(missing))}")

        result = ImportResult()
        for line_no, row in enumerate(reader, start=2):
            username = (row.get("username") or "").strip()
            try:
                self.create_account(
                    current_role=current_role,
                    username=username,
                    name=row.get("name") or "",
                    email=row.get("email") or "",
                    password=row.get("password") or "",
                    role=Role.STUDENT,
                )
                result.created += 1
            except ConflictError:
                result.skipped.append(username)
            except ValidationError as e:
                result.errors.append(f"line {line_no}: {e}")

        logger.info(
            "Student import: created=%s skipped=%s errors=%s",
            result.created,
            len(result.skipped),
            len(result.errors),
        )
        return result
