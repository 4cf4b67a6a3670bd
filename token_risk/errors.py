"""
Error types for the token risk engine.

Missing data is never an error here: factor calculators degrade to neutral
scores instead. Exceptions are reserved for structurally invalid input,
bad configuration and an unreachable cache backend.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(Enum):
    """Error codes for the token risk engine."""
    # General errors
    UNKNOWN_ERROR = 1000
    CONFIGURATION_ERROR = 1001
    VALIDATION_ERROR = 1002

    # Input errors
    INVALID_INPUT = 2000

    # Cache errors
    CACHE_UNAVAILABLE = 3000

    # Data errors
    DATA_ERROR = 4000


class TokenRiskError(Exception):
    """Base exception class for all token risk engine errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize a new TokenRiskError.

        Args:
            message: Error message
            error_code: Error code from ErrorCode enum
            details: Additional error details
        """
        self.message = message
        self.error_code = error_code
        self.details = details or {}

        formatted_message = f"[{error_code.name}] {message}"
        if details:
            formatted_message += f" - Details: {details}"

        super().__init__(formatted_message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the error to a serializable dictionary."""
        return {
            "error": self.message,
            "error_code": self.error_code.name,
            "details": self.details,
        }


class InvalidInputError(TokenRiskError):
    """Raised for structurally invalid token data (negative supply, NaN, ...)."""

    def __init__(
        self,
        message: str,
        fields: Optional[List[str]] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize the invalid input error.

        Args:
            message: Error message
            fields: Names of the offending input fields
            details: Additional error details
        """
        self.fields = list(fields or [])
        error_details = dict(details or {})
        if self.fields:
            error_details.setdefault("fields", self.fields)
        super().__init__(message, ErrorCode.INVALID_INPUT, error_details)


class ConfigurationError(TokenRiskError):
    """Raised when settings or a weight profile are invalid."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class CacheUnavailableError(TokenRiskError):
    """Raised by a cache backend that cannot be reached."""

    def __init__(
        self,
        message: str,
        backend: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        """
        Initialize the cache error.

        Args:
            message: Error message
            backend: Name of the backend that failed
            original_error: The original exception that caused this error
        """
        self.backend = backend
        self.original_error = original_error
        details: Dict[str, Any] = {}
        if backend:
            details["backend"] = backend
        if original_error is not None:
            details["original_error"] = str(original_error)
        super().__init__(message, ErrorCode.CACHE_UNAVAILABLE, details)
