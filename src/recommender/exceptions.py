"""Custom exceptions for MitraRec.

Defines specific exception types for better error handling and reporting.
"""

from typing import Any, Dict, Optional


class MitraRecException(Exception):
    """Base exception for MitraRec errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code for API responses
            details: Additional error details for debugging
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class DataUnavailableError(MitraRecException):
    """Raised when the activity log or the product catalog cannot be read."""

    def __init__(self, source: str, error: Exception):
        message = f"Failed to read {source}: {str(error)}"
        super().__init__(
            message=message,
            status_code=503,
            details={
                "source": source,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )


class MalformedRecordError(MitraRecException):
    """Raised when a single activity or product row cannot be parsed."""

    def __init__(self, kind: str, reason: str, record_id: Optional[str] = None):
        message = f"Malformed {kind} record"
        if record_id:
            message += f" '{record_id}'"
        message += f": {reason}"
        super().__init__(
            message=message,
            status_code=422,
            details={"kind": kind, "record_id": record_id, "reason": reason},
        )
