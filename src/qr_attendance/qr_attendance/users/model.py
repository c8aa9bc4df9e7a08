from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role, UserStatus


@dataclass(frozen=True)
class User:
    """Domain entity: a student or administrator account.

    Note: Plain data object (no DB access code here).
    """

    user_id: int
    username: str
    name: str
    email: str
    password_hash: str
    role: Role
    status: UserStatus = UserStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def public_view(self) -> dict:
        return {
            "id": self.user_id,
            "username": self.username,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "status": self.status.value,
        }
