# tutor/core/errors.py
"""
Application error types.

Every error raised on purpose by the service layer derives from ``AppError``
and carries the HTTP status it maps to. ``tutor.main`` renders them as
``{"success": false, "error": message}``.
"""
from fastapi import status


class AppError(Exception):
    """Base class for errors that are safe to show to the caller."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationFailed(AppError):
    """Request passed schema validation but is still unusable."""

    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)
        self.errors = errors or []


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class EmailAlreadyRegistered(AppError):
    def __init__(self):
        super().__init__("User already exists", status.HTTP_400_BAD_REQUEST)


class ActiveSessionExists(AppError):
    def __init__(self):
        super().__init__(
            "You already have an active session. Please end the current session first.",
            status.HTTP_400_BAD_REQUEST,
        )


class SessionNotFound(AppError):
    def __init__(self, message: str = "Active session not found"):
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class UpstreamUnavailable(AppError):
    """A provider capability with no fallback tier failed."""

    def __init__(self, message: str):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)
