class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a requested user, session or record does not exist."""


class ConflictError(DomainError):
    """Raised when an action would duplicate existing state."""


class DuplicateAttendanceError(ConflictError):
    """Raised when a (user, session) pair already has an attendance record."""


class StorageError(Exception):
    """Any failure to read or write through the persistence layer.

    Covers connectivity problems, query failures and timeouts.
    """
