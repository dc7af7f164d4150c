"""Custom exceptions for the CartRec API.

Defines specific exception types for better error handling and reporting.
"""

from typing import Any, Dict, Optional


class CartRecException(Exception):
    """Base exception for CartRec errors."""

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


class DataSourceUnavailableError(CartRecException):
    """Raised when the order history or item catalog cannot be read."""

    def __init__(self, source: str, error: Exception):
        message = f"Order data unavailable from '{source}': {str(error)}"
        super().__init__(
            message=message,
            status_code=503,
            details={
                "source": source,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )


class InvalidParameterError(CartRecException):
    """Raised when mining or scoring parameters are out of range."""

    def __init__(self, error: Exception, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"Invalid parameter: {str(error)}",
            status_code=422,
            details=details or {"error": str(error)},
        )


class RecommendationError(CartRecException):
    """Raised when recommendation generation fails."""

    def __init__(self, error: Exception, basket_size: int = 0):
        message = f"Failed to generate recommendations: {str(error)}"
        super().__init__(
            message=message,
            status_code=500,
            details={
                "basket_size": basket_size,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )
