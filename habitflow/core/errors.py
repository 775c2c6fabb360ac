"""Error types and classification utilities for tracker operations."""

from enum import Enum

from pydantic import BaseModel


class ErrorCategory(Enum):
    """Categories of errors that can surface from tracker operations."""

    PERSISTENCE_FAILED = "persistence_failed"
    MALFORMED_DATA = "malformed_data"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Storage errors
    ERR_PERSISTENCE_FAILED = "ERR_PERSISTENCE_FAILED"
    ERR_MALFORMED_DATA = "ERR_MALFORMED_DATA"

    # Generic errors
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity


class PersistenceError(RuntimeError):
    """A durable write failed after all retry attempts.

    The in-memory state already holds the change; callers may retry the
    write later instead of redoing the action.
    """

    def __init__(self, key: str, message: str) -> None:
        super().__init__(message)
        self.key = key
        self.recoverable = True


class MalformedDataError(ValueError):
    """Persisted data could not be decoded."""

    def __init__(self, key: str, message: str) -> None:
        super().__init__(message)
        self.key = key


def classify_error(exception: Exception) -> ErrorCategory:
    """Return the error category for an exception raised by the tracker."""
    if isinstance(exception, PersistenceError):
        return ErrorCategory.PERSISTENCE_FAILED
    if isinstance(exception, MalformedDataError):
        return ErrorCategory.MALFORMED_DATA
    return ErrorCategory.UNKNOWN


def classify_error_with_response(exception: Exception) -> ErrorResponse:
    """Classify an error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised during execution

    Returns:
        ErrorResponse with code, message, suggestion, and severity
    """
    category = classify_error(exception)

    if category == ErrorCategory.PERSISTENCE_FAILED:
        return ErrorResponse(
            code=ErrorCode.ERR_PERSISTENCE_FAILED,
            message="Your change was kept but could not be saved yet.",
            suggestion="We'll try again automatically. You can also retry saving now.",
            severity=ErrorSeverity.HIGH,
        )

    if category == ErrorCategory.MALFORMED_DATA:
        return ErrorResponse(
            code=ErrorCode.ERR_MALFORMED_DATA,
            message="Some saved data could not be read.",
            suggestion="Records that could not be read were kept unchanged. Update the app and try again.",
            severity=ErrorSeverity.MEDIUM,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, restart the app.",
        severity=ErrorSeverity.MEDIUM,
    )
