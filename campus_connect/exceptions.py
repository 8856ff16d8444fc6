# campus_connect/exceptions.py
"""
Application error taxonomy.

Services and crud functions raise these; the handlers registered in main.py
turn them into the `{success: false, message, error}` envelope.
"""
from typing import Any, Optional


class AppError(Exception):
    status_code = 500
    error_code = "internal_error"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AppError):
    status_code = 400
    error_code = "validation_error"


class InvalidTransitionError(ValidationError):
    error_code = "invalid_transition"


class AuthenticationError(AppError):
    status_code = 401
    error_code = "authentication_error"


class AuthorizationError(AppError):
    status_code = 403
    error_code = "forbidden"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"


class ConflictError(AppError):
    # Duplicates and full slots are reported as 400, not 409.
    status_code = 400
    error_code = "conflict"


class UpstreamError(AppError):
    status_code = 500
    error_code = "upstream_error"
