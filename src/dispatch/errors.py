from __future__ import annotations

from typing import Optional

from fastapi import status


class DispatchError(Exception):
    """Base class for errors surfaced to API callers.

    Each subclass maps to one HTTP status. ``message`` is safe to return to the
    caller; ``error`` is an optional short detail rendered alongside it.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Server error"

    def __init__(self, message: Optional[str] = None, *, error: Optional[str] = None) -> None:
        self.message = message or self.default_message
        self.error = error
        super().__init__(self.message)


class ValidationFailed(DispatchError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class InvalidCoordinates(ValidationFailed):
    default_message = "Invalid coordinates"


class AuthenticationFailed(DispatchError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid or expired token"


class TokenExpired(AuthenticationFailed):
    default_message = "Token expired. Please log in again."


class PermissionDenied(DispatchError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied."


class NotFound(DispatchError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(DispatchError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"
