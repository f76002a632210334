"""
Base exception classes for the storefront checkout core.
"""


class StorefrontException(Exception):
    """
    Base exception for all storefront domain errors.

    All custom exceptions inherit from this class, so the order processing
    boundary can translate every domain failure with a single handler.

    Attributes:
        error_code: Stable machine-readable code reported in OrderResult.error
        message: Human-readable error message
        details: Optional dict with additional context (entity IDs, states, etc.)
    """

    error_code = "storefront_error"

    def __init__(self, message: str, details: dict | None = None):
        """
        Initialize base exception.

        Args:
            message: Human-readable error message
            details: Optional dict with additional context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message."""
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation with context."""
        if self.details:
            details_str = ', '.join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"
