"""Exceptions for expected failure conditions.

Raise these from business logic when returning a ServiceResult is awkward.
The handler wrapper classifies them by type; anything else is INTERNAL.
"""

from __future__ import annotations

from typing import Any, ClassVar

from request_pipeline.service_result import ErrorKind, ServiceResult, error

__all__ = [
    "ServiceFailure",
    "ValidationFailure",
    "NotFoundError",
    "UnauthorizedError",
    "ForbiddenError",
    "ConflictError",
    "InternalError",
    "classify",
]


class ServiceFailure(Exception):
    """Base class for failures that carry an ErrorKind."""

    kind: ClassVar[ErrorKind] = ErrorKind.INTERNAL
    default_message: ClassVar[str] = "Operation failed"

    def __init__(self, message: str | None = None, details: Any = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_result(self) -> ServiceResult:
        """Convert into a failed ServiceResult."""
        return error(self.kind, self.message, self.details)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(kind={self.kind.value}, message={self.message!r})"


class ValidationFailure(ServiceFailure):
    kind = ErrorKind.VALIDATION
    default_message = "Validation failed"


class NotFoundError(ServiceFailure):
    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found"


class UnauthorizedError(ServiceFailure):
    kind = ErrorKind.UNAUTHORIZED
    default_message = "Authentication required"


class ForbiddenError(ServiceFailure):
    kind = ErrorKind.FORBIDDEN
    default_message = "Insufficient permissions"


class ConflictError(ServiceFailure):
    kind = ErrorKind.CONFLICT
    default_message = "Resource state conflict"


class InternalError(ServiceFailure):
    kind = ErrorKind.INTERNAL
    default_message = "Internal server error"


def classify(exc: BaseException) -> ErrorKind:
    """Return the ErrorKind of an exception.

    Only ServiceFailure subclasses carry a kind; every other exception is an
    unexpected fault.
    """
    if isinstance(exc, ServiceFailure):
        return exc.kind
    return ErrorKind.INTERNAL
