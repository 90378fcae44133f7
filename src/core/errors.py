"""Domain errors.

Every rule violation raises a single ``StreakError`` tagged with an
``ErrorKind``; the caller dispatches on ``kind`` for presentation.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    ALREADY_EXISTS = "already_exists"
    NOT_FOUND = "not_found"
    INVALID_CREDENTIAL = "invalid_credential"
    NOT_MEMBER = "not_member"
    NOT_ADMIN = "not_admin"
    DUPLICATE_REQUEST = "duplicate_request"
    ALREADY_MEMBER = "already_member"
    ALREADY_LOGGED_TODAY = "already_logged_today"
    INVALID_HOURS = "invalid_hours"
    ADMIN_LOCKED = "admin_locked"   # admin tried to leave or remove themself


class StreakError(Exception):
    """Raised when an operation violates a membership or logging rule."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"StreakError({self.kind.name}, {self.message!r})"


class PersistenceError(Exception):
    """Raised when a snapshot cannot be written or read."""
