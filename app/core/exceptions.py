"""
Domain exceptions for CoachFit.

Services raise these instead of building HTTP responses themselves; the
handlers in ``app.core.exception_handlers`` turn them into the standard
``{success: false, error: ...}`` envelope.
"""

from typing import Any, Dict, Optional


class CoachFitError(Exception):
    """Base class for all expected, client-facing errors."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(CoachFitError):
    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(CoachFitError):
    status_code = 401
    default_message = "Could not validate credentials"


class PermissionDeniedError(CoachFitError):
    status_code = 403
    default_message = "Access denied"


class NotFoundError(CoachFitError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(CoachFitError):
    status_code = 409
    default_message = "Resource conflict"


class ServiceUnavailableError(CoachFitError):
    status_code = 503
    default_message = "Service temporarily unavailable"
