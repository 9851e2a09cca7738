"""
Error types shared by the repository, service and API layers.

``UserNotFoundError`` is the not‑found sentinel and is never used for
anything else.  ``RepositoryError`` wraps every storage failure and is
always raised ``from`` the driver exception so the original cause is
kept for logging.  The HTTP mapping of these errors lives in
``main.register_exception_handlers``.
"""

from typing import Optional


class UserCrudError(Exception):
    """Base class for errors raised by this application."""


class UserNotFoundError(UserCrudError):
    """No user exists with the requested id."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"user {user_id} not found")
        self.user_id = user_id


class RepositoryError(UserCrudError):
    """A storage operation failed (connection, constraint, driver error)."""

    def __init__(self, operation: str, user_id: Optional[int] = None) -> None:
        message = f"failed to {operation}"
        if user_id is not None:
            message = f"{message} (user_id={user_id})"
        super().__init__(message)
        self.operation = operation
        self.user_id = user_id


class DatabaseConnectionError(UserCrudError):
    """The database could not be reached during startup."""


class InvalidUserIdError(UserCrudError):
    """A path id is not a non‑zero base‑10 64‑bit integer."""

    def __init__(self, raw: str, reason: str) -> None:
        super().__init__(f"invalid user id {raw!r}: {reason}")
        self.raw = raw
        self.reason = reason
