"""The validation rule contract.

A rule is an immutable value: a field path, a pure check function and an
optional flag. Rules hold no per-call state, so one instance can be shared
across concurrent requests.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from request_pipeline.results import DEFAULT_ERROR_CODE, ValidationError

__all__ = [
    "MISSING",
    "RuleOutcome",
    "ValidationRule",
    "custom",
    "is_empty",
    "resolve_field",
]


class _Missing:
    """Sentinel type for a field path that does not resolve."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


@dataclass(frozen=True)
class RuleOutcome:
    """Result of a single rule check: pass, or fail with a message."""

    passed: bool
    message: str | None = None
    code: str | None = None

    @classmethod
    def ok(cls) -> RuleOutcome:
        return _PASS

    @classmethod
    def fail(cls, message: str, code: str = DEFAULT_ERROR_CODE) -> RuleOutcome:
        return cls(passed=False, message=message, code=code)


_PASS = RuleOutcome(passed=True)

CheckFn = Callable[[Any, Any], RuleOutcome]


def resolve_field(data: Any, path: str) -> Any:
    """Resolve a dot-path against mappings, sequences and object attributes.

    Returns MISSING instead of raising when any segment is absent, including
    when ``data`` itself is None.

    Example:
        resolve_field({"boat": {"engines": [{"hp": 300}]}}, "boat.engines.0.hp")
        # -> 300
    """
    current = data
    for segment in path.split("."):
        if current is None or current is MISSING:
            return MISSING
        if isinstance(current, Mapping):
            if segment not in current:
                return MISSING
            current = current[segment]
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            if not segment.lstrip("-").isdigit():
                return MISSING
            index = int(segment)
            if not -len(current) <= index < len(current):
                return MISSING
            current = current[index]
        else:
            if not hasattr(current, segment):
                return MISSING
            current = getattr(current, segment)
    return current


def is_empty(value: Any) -> bool:
    """True for missing, None, empty string and empty collections."""
    if value is MISSING or value is None:
        return True
    if isinstance(value, (str, bytes)):
        return len(value) == 0
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value) == 0
    return False


@dataclass(frozen=True)
class ValidationRule:
    """A named check over one field of an input object.

    Attributes:
        field: Dot-path of the field being checked.
        check: Pure function ``(value, data) -> RuleOutcome``.
        optional: If True, an empty value passes without calling ``check``.
        name: Short rule name, e.g. ``"required"``.
        echo_value: Include the offending value in the error. Disable for
            secrets such as passwords.
    """

    field: str
    check: CheckFn
    optional: bool = False
    name: str = "rule"
    echo_value: bool = True

    def evaluate(self, data: Any) -> ValidationError | None:
        """Run the rule against ``data`` and return an error or None."""
        value = resolve_field(data, self.field)
        if self.optional and is_empty(value):
            return None
        outcome = self.check(value, data)
        if outcome.passed:
            return None
        return ValidationError(
            field=self.field,
            message=outcome.message or f"Validation failed for {self.field}",
            code=outcome.code or DEFAULT_ERROR_CODE,
            value=None if value is MISSING or not self.echo_value else value,
        )

    def __repr__(self) -> str:
        flag = ", optional=True" if self.optional else ""
        return f"ValidationRule(name={self.name!r}, field={self.field!r}{flag})"


def custom(
    field: str,
    predicate: Callable[[Any, Any], bool],
    message: str,
    code: str = "CUSTOM_VALIDATION_ERROR",
    *,
    optional: bool = False,
) -> ValidationRule:
    """Create a one-off rule from a boolean predicate.

    Args:
        field: Dot-path of the field to check.
        predicate: Called as ``predicate(value, data)``; truthy means pass.
            A missing field is passed as ``MISSING``.
        message: Error message when the predicate fails.
        code: Machine-readable error code.
        optional: Skip the check when the value is empty.

    Example:
        adult = custom("age", lambda v, _: isinstance(v, int) and v >= 18,
                       "Must be 18 or older", "AGE_REQUIREMENT")
    """

    def check(value: Any, data: Any) -> RuleOutcome:
        if predicate(value, data):
            return RuleOutcome.ok()
        return RuleOutcome.fail(message, code)

    return ValidationRule(field=field, check=check, optional=optional, name="custom")
