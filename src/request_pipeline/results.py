"""Validation result containers.

Field-level errors and the aggregate verdict produced by running a rule set.
Both are immutable once built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

__all__ = ["ValidationError", "ValidationVerdict"]

DEFAULT_ERROR_CODE = "VALIDATION_ERROR"


@dataclass(frozen=True)
class ValidationError:
    """A single field-level validation failure."""

    field: str
    message: str
    code: str = DEFAULT_ERROR_CODE
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready shape used in error details."""
        d: dict[str, Any] = {"field": self.field, "message": self.message, "code": self.code}
        if self.value is not None:
            d["value"] = self.value
        return d


@dataclass(frozen=True)
class ValidationVerdict:
    """Outcome of running a rule set against one input.

    Errors keep rule declaration order, so two runs over the same input
    produce identical verdicts.
    """

    errors: tuple[ValidationError, ...] = field(default_factory=tuple)

    @property
    def valid(self) -> bool:
        """True iff there are no errors."""
        return not self.errors

    @property
    def fields(self) -> list[str]:
        """Distinct failing field names, in first-seen order."""
        return list(dict.fromkeys(e.field for e in self.errors))

    def merge(self, other: ValidationVerdict) -> ValidationVerdict:
        """Return a new verdict with this verdict's errors followed by other's.

        Example:
            combined = address_verdict.merge(contact_verdict)
        """
        return ValidationVerdict(errors=self.errors + other.errors)

    def summary(self) -> str:
        """Human-readable one-line summary.

        N in "Validation failed for N field(s)" counts errors, so a field with
        two failing rules counts twice.
        """
        if not self.errors:
            return "Validation passed"
        if len(self.errors) == 1:
            return self.errors[0].message
        return f"Validation failed for {len(self.errors)} field(s)"

    def to_details(self) -> list[dict[str, Any]]:
        """Errors as a list of dicts, ready for a response body."""
        return [e.to_dict() for e in self.errors]
