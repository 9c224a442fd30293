"""Custom exception classes for the application.

Each error carries the HTTP status it maps to; the handlers registered in
``partsmarket.main`` render them as ``{"message", "error", "errors"}``.
"""

from typing import Dict, Optional


class PartsMarketError(Exception):
    """Base exception for all PartsMarket errors."""

    status_code: int = 500

    def __init__(self, message: str = "An unexpected error occurred", error: Optional[str] = None):
        self.message = message
        self.error = error
        super().__init__(self.message)


class InvalidArgumentError(PartsMarketError):
    """Raised when input is missing or malformed.

    ``errors`` holds a field -> message mapping when several fields can fail
    at once (product submission).
    """

    status_code = 400

    def __init__(
        self,
        message: str,
        errors: Optional[Dict[str, str]] = None,
        error: Optional[str] = None,
    ):
        super().__init__(message, error=error)
        self.errors = errors or {}


class NotFoundError(PartsMarketError):
    """Raised when a requested resource is not found."""

    status_code = 404

    def __init__(self, resource: str, identifier: object = None):
        self.resource = resource
        if identifier is None:
            super().__init__(f"{resource} not found")
        else:
            super().__init__(f"{resource} with identifier '{identifier}' not found")


class ConflictError(PartsMarketError):
    """Raised when a name is already taken or when children block a delete."""

    status_code = 400


class StoreFailureError(PartsMarketError):
    """Raised when the persistence layer fails; details stay in the log."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, error="store_failure")
