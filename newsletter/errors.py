"""
Application error hierarchy.

Every error raised towards the HTTP boundary derives from ``AppError`` and
declares the status code and error code it is rendered with. Operations
define their own subclasses so the mapping stays explicit at the raise site.
"""

from fastapi import status


class AppError(Exception):
    """Base class for errors rendered as ``{"error": {...}}`` responses."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    @property
    def public_message(self) -> str:
        """Message safe to show to the client."""
        if self.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            return AppError.message
        return self.message


class ValidationFailed(AppError):
    """Malformed client input. Never retried automatically."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    message = "Invalid request"


class Unauthorized(AppError):
    """Missing, unknown or already consumed credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"
    message = "Not authorized"


class AdminRequired(AppError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED
    code = "ADMIN_REQUIRED"
    message = "Restricted operation"


class UnexpectedError(AppError):
    """
    Infrastructure failure such as a database or email provider error.

    Safe to retry: either nothing was committed or the idempotency key makes
    the retry side-effect free. Always raised ``from`` the underlying cause.
    """
