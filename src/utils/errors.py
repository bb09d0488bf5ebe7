"""
Error handling utilities for Lambda functions.

Provides standardized error responses with error codes and the HTTP status
each code is surfaced with.
"""

from typing import Any, Dict, Optional


class AppError(Exception):
    """
    Application error with error code and message.

    Raised by the approval workflow and validators, caught at the handler
    boundary and turned into the response envelope.
    """

    def __init__(self, error_code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def status_code(self) -> int:
        """HTTP status code for this error."""
        return http_status_for(self.error_code)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the error body of the response envelope."""
        return {
            "errorMessage": self.message,
            "errorCode": self.error_code,
            **self.details,
        }


# Common error codes
class ErrorCode:
    """Standard error codes for the application."""

    # Authorization errors
    FORBIDDEN = "FORBIDDEN"
    UNAUTHORIZED = "UNAUTHORIZED"

    # Resource errors
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"

    # Workflow errors
    CONFLICT = "CONFLICT"
    VERSION_CONFLICT = "VERSION_CONFLICT"

    # Validation errors
    INVALID_INPUT = "INVALID_INPUT"

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


_HTTP_STATUS_BY_CODE: Dict[str, int] = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.ALREADY_EXISTS: 400,
    ErrorCode.CONFLICT: 400,
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.VERSION_CONFLICT: 409,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.DATABASE_ERROR: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}


def http_status_for(error_code: str) -> int:
    """Map an error code to its HTTP status (500 for unknown codes)."""
    return _HTTP_STATUS_BY_CODE.get(error_code, 500)


def handle_error(error: Exception) -> Dict[str, Any]:
    """
    Convert exception to standardized error body.

    Args:
        error: Exception to handle

    Returns:
        Error dictionary for the response envelope
    """
    if isinstance(error, AppError):
        return error.to_dict()

    # Unexpected error - log and return generic message
    return {
        "errorMessage": "An unexpected error occurred. Please try again.",
        "errorCode": ErrorCode.INTERNAL_ERROR,
    }
