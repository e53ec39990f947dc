"""
Tagged results returned by the rules engines.

An Outcome is either a success carrying a value or a failure carrying an
ErrorKind and a human readable message. Storage faults are not outcomes;
they travel as StorageError.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Optional, Type, TypeVar

from .exceptions import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
    WheelyException,
)

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Stable, enumerable failure kinds."""

    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"


_EXCEPTION_FOR_KIND: Dict[ErrorKind, Type[WheelyException]] = {
    ErrorKind.INVALID_INPUT: InvalidInputError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.CONFLICT: ConflictError,
    ErrorKind.UNAUTHORIZED: UnauthorizedError,
}


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a rules engine operation."""

    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> "Outcome[T]":
        return cls(error=kind, message=message, details=details or {})

    def to_exception(self) -> WheelyException:
        """Build the boundary exception that matches this failure."""
        if self.error is None:
            raise ValueError("Successful outcome has no exception")
        return _EXCEPTION_FOR_KIND[self.error](self.message, details=self.details or None)

    def unwrap(self) -> T:
        """
        Return the value of a successful outcome.

        Raises the matching WheelyException for a failure; used by the
        request boundary only.
        """
        if self.error is not None:
            raise self.to_exception()
        return self.value  # type: ignore[return-value]
