"""
Error hierarchy for the task manager.

Every error that can reach a client derives from ``TaskManagerError`` and
knows its HTTP status and how to render itself as the shared error body::

    {"success": false, "message": "...", "errors": [{"field": ..., "message": ...}]}

Hierarchy:
    TaskManagerError
    ├── ValidationError          (400)
    │   └── InvalidArgumentError (400)
    ├── UnauthenticatedError     (401)
    ├── NotFoundError            (404)
    ├── DuplicateKeyError        (400)
    └── StorageError             (500)

    TokenError                   (internal only, never rendered)
    ├── MalformedTokenError
    ├── InvalidSignatureError
    └── ExpiredTokenError
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class TaskManagerError(Exception):
    """Base class for errors rendered to API clients."""

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
    ):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(TaskManagerError):
    """Client-fixable input problem. ``errors`` lists every bad field."""

    status_code = 400
    default_message = "Validation failed"


class InvalidArgumentError(ValidationError):
    """A single argument is unusable (e.g. an empty search query)."""

    def __init__(self, field: str, message: str):
        super().__init__(message, errors=[{"field": field, "message": message}])


class UnauthenticatedError(TaskManagerError):
    """Missing, invalid or expired credentials, or an unknown user.

    The message is intentionally the same for every cause.
    """

    status_code = 401
    default_message = "Not authorized"


class NotFoundError(TaskManagerError):
    """Resource absent or owned by someone else; callers can't tell which."""

    status_code = 404
    default_message = "Resource not found"


class DuplicateKeyError(TaskManagerError):
    status_code = 400
    default_message = "Resource already exists"


class StorageError(TaskManagerError):
    """Persistence failure. Detail goes to the logs, not to the client."""

    status_code = 500
    default_message = "A storage error occurred"


# ── Token verification failures ─────────────────────────────────────────


class TokenError(Exception):
    """Base class for token verification failures."""


class MalformedTokenError(TokenError):
    pass


class InvalidSignatureError(TokenError):
    pass


class ExpiredTokenError(TokenError):
    pass
