"""
Custom exceptions for the Wheely service.

Provides structured error handling with appropriate HTTP status codes
and error details for API responses. Rules engines report validation and
authorization failures as outcomes; these exceptions are how the request
boundary and the persistence gateway surface them.
"""

from typing import Any, Dict, Optional


class WheelyException(Exception):
    """Base exception for the Wheely service."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "internal_error",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}


class InvalidInputError(WheelyException):
    """Raised when a payload fails a stated constraint."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="invalid_input",
            details=details,
        )


class NotFoundError(WheelyException):
    """Raised when a referenced entity does not exist."""

    def __init__(self, message: str = "Resource not found", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            status_code=404,
            error_code="not_found",
            details=details,
        )


class ConflictError(WheelyException):
    """Raised on a uniqueness violation."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            status_code=409,
            error_code="conflict",
            details=details,
        )


class UnauthorizedError(WheelyException):
    """Raised when the acting account is not allowed to do what it asked."""

    def __init__(self, message: str = "Invalid credentials", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            status_code=401,
            error_code="unauthorized",
            details=details,
        )


class RateLimitError(WheelyException):
    """Raised when rate limit is exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[int] = None,
    ) -> None:
        details = {}
        if retry_after:
            details["retry_after"] = retry_after

        super().__init__(
            message=message,
            status_code=429,
            error_code="rate_limit_exceeded",
            details=details,
        )


class StorageError(WheelyException):
    """Raised when the relational store fails. Never reinterpreted by the rules engines."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            status_code=500,
            error_code="storage_error",
            details=details,
        )


class DuplicateKeyError(StorageError):
    """Raised when the store rejects a row because of a unique constraint."""

    def __init__(self, message: str = "Duplicate key", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message=message, details=details)
