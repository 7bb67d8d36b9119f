"""ServiceResult and the error taxonomy.

Business logic returns a ServiceResult; the response handler is its only
consumer. Every ErrorKind maps to exactly one HTTP status code through a
fixed lookup table.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, model_validator

__all__ = [
    "ErrorKind",
    "STATUS_CODES",
    "ServiceError",
    "ServiceResult",
    "success",
    "error",
]


class ErrorKind(str, Enum):
    """Closed set of failure categories."""

    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"
    INTERNAL = "INTERNAL"

    @property
    def status_code(self) -> int:
        """HTTP status code for this kind."""
        return STATUS_CODES[self]

    @property
    def is_expected(self) -> bool:
        """True for client-facing conditions, False for system faults."""
        return self is not ErrorKind.INTERNAL


STATUS_CODES: MappingProxyType[ErrorKind, int] = MappingProxyType(
    {
        ErrorKind.VALIDATION: 400,
        ErrorKind.UNAUTHORIZED: 401,
        ErrorKind.FORBIDDEN: 403,
        ErrorKind.NOT_FOUND: 404,
        ErrorKind.CONFLICT: 409,
        ErrorKind.INTERNAL: 500,
    }
)

_unmapped = set(ErrorKind) - set(STATUS_CODES)
if _unmapped:
    raise RuntimeError(f"ErrorKind members without a status code: {sorted(_unmapped)}")
del _unmapped


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    kind: ErrorKind
    message: str
    details: Any = None


class ServiceResult(BaseModel):
    """Uniform outcome of a business operation.

    Attributes:
        success: Whether the operation succeeded.
        data: Operation-specific payload; only set on success.
        error: Structured error; only set on failure.
        meta: Optional metadata echoed into the response body.
    """

    model_config = {"frozen": True}

    success: bool
    data: Any = None
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _check_envelope(self) -> ServiceResult:
        if self.success and self.error is not None:
            raise ValueError("a successful result cannot carry an error")
        if not self.success:
            if self.error is None:
                raise ValueError("a failed result must carry an error")
            if self.data is not None:
                raise ValueError("a failed result cannot carry data")
        return self

    @property
    def status_code(self) -> int | None:
        """Status code of the error kind, or None on success."""
        return self.error.kind.status_code if self.error else None


def success(data: Any = None, meta: dict[str, Any] | None = None) -> ServiceResult:
    """Build a successful ServiceResult."""
    return ServiceResult(success=True, data=data, meta=meta)


def error(kind: ErrorKind | str, message: str, details: Any = None) -> ServiceResult:
    """Build a failed ServiceResult.

    Args:
        kind: ErrorKind member or its name.
        message: Human-readable message.
        details: Optional structured context, e.g. field errors.
    """
    return ServiceResult(
        success=False,
        error=ServiceError(kind=ErrorKind(kind), message=message, details=details),
    )
