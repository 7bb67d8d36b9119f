"""Reusable validation rules for common request fields.

Each constructor is pure and returns an immutable ValidationRule closed
over its parameters. Rules built here are safe to define once at module
level and share across requests.

Example:
    from request_pipeline import common_rules as rules

    LISTING_RULES = [
        rules.required("title"),
        rules.length_range("title", 10, 100, label="Title"),
        rules.price_range(),
        rules.year_range(),
        rules.optional(rules.email("contactEmail")),
    ]
"""

from __future__ import annotations

import dataclasses
import math
import re
from collections.abc import Callable, Iterable, Sequence
from datetime import date
from typing import Any

from request_pipeline.rules import MISSING, RuleOutcome, ValidationRule, is_empty

__all__ = [
    "EMAIL_PATTERN",
    "UUID_PATTERN",
    "PASSWORD_MIN_LENGTH",
    "PRICE_MIN",
    "PRICE_MAX",
    "YEAR_MIN",
    "required",
    "email",
    "min_length",
    "max_length",
    "length_range",
    "numeric_range",
    "price_range",
    "year_range",
    "one_of",
    "uuid",
    "boolean",
    "password_strength",
    "array_not_empty",
    "array_length",
    "pattern",
    "optional",
]

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
UUID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE
)

PASSWORD_MIN_LENGTH = 8
PRICE_MIN = 1
PRICE_MAX = 10_000_000
YEAR_MIN = 1900


def _label(field: str, label: str | None) -> str:
    return label or field


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid number here
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    # only floats can be inf or nan; a huge int is valid and must not go through float()
    return not isinstance(value, float) or math.isfinite(value)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _text(value: Any) -> str | None:
    """Return the string to measure, or None when the value is not a string."""
    if value is MISSING or value is None:
        return ""
    if isinstance(value, str):
        return value
    return None


def required(field: str, *, label: str | None = None) -> ValidationRule:
    """Fail if the value is missing, None, empty string or an empty collection."""
    message = f"{_label(field, label)} is required"

    def check(value: Any, data: Any) -> RuleOutcome:
        if is_empty(value):
            return RuleOutcome.fail(message, "REQUIRED_FIELD")
        return RuleOutcome.ok()

    return ValidationRule(field=field, check=check, name="required")


def email(field: str = "email", *, label: str | None = None) -> ValidationRule:
    """Fail if a present value is not ``local@domain.tld``.

    An absent value passes; pair with ``required`` to demand presence.
    """
    message = f"{label} must be a valid email address" if label else "Invalid email format"

    def check(value: Any, data: Any) -> RuleOutcome:
        if value is MISSING or value is None:
            return RuleOutcome.ok()
        if isinstance(value, str) and EMAIL_PATTERN.fullmatch(value):
            return RuleOutcome.ok()
        return RuleOutcome.fail(message, "INVALID_EMAIL")

    return ValidationRule(field=field, check=check, name="email")


def _length_rule(
    field: str,
    label: str | None,
    name: str,
    code: str,
    message: str,
    accept: Callable[[int], bool],
) -> ValidationRule:
    type_message = f"{_label(field, label)} must be a string"

    def check(value: Any, data: Any) -> RuleOutcome:
        text = _text(value)
        if text is None:
            return RuleOutcome.fail(type_message, "INVALID_TYPE")
        if accept(len(text)):
            return RuleOutcome.ok()
        return RuleOutcome.fail(message, code)

    return ValidationRule(field=field, check=check, name=name)


def min_length(field: str, n: int, *, label: str | None = None) -> ValidationRule:
    """Fail if the string is shorter than ``n`` characters."""
    return _length_rule(
        field,
        label,
        "min_length",
        "MIN_LENGTH",
        f"{_label(field, label)} must be at least {n} characters",
        lambda length: length >= n,
    )


def max_length(field: str, n: int, *, label: str | None = None) -> ValidationRule:
    """Fail if the string is longer than ``n`` characters."""
    return _length_rule(
        field,
        label,
        "max_length",
        "MAX_LENGTH",
        f"{_label(field, label)} must be at most {n} characters",
        lambda length: length <= n,
    )


def length_range(
    field: str, min: int, max: int, *, label: str | None = None
) -> ValidationRule:
    """Fail if the string length falls outside ``[min, max]``."""
    return _length_rule(
        field,
        label,
        "length_range",
        "LENGTH_RANGE",
        f"{_label(field, label)} must be between {min} and {max} characters",
        lambda length: min <= length <= max,
    )


def _range_rule(
    field: str,
    bounds: Callable[[], tuple[float, float]],
    message: Callable[[float, float], str],
    code: str,
    name: str,
    type_message: str,
) -> ValidationRule:
    def check(value: Any, data: Any) -> RuleOutcome:
        if not _is_number(value):
            return RuleOutcome.fail(type_message, "INVALID_TYPE")
        low, high = bounds()
        if low <= value <= high:
            return RuleOutcome.ok()
        return RuleOutcome.fail(message(low, high), code)

    return ValidationRule(field=field, check=check, name=name)


def numeric_range(
    field: str, min: float, max: float, *, label: str | None = None
) -> ValidationRule:
    """Fail unless the value is a finite int/float within ``[min, max]``.

    Numeric strings are not coerced; normalize input before validating.
    """
    name = _label(field, label)
    return _range_rule(
        field,
        lambda: (min, max),
        lambda low, high: f"{name} must be between {low} and {high}",
        "NUMERIC_RANGE",
        "numeric_range",
        f"{name} must be a number",
    )


def price_range(field: str = "price", *, label: str | None = None) -> ValidationRule:
    """Numeric range ``[1, 10_000_000]``."""
    name = _label(field, label or "Price")
    return _range_rule(
        field,
        lambda: (PRICE_MIN, PRICE_MAX),
        lambda low, high: f"{name} must be between ${low:,} and ${high:,}",
        "INVALID_PRICE_RANGE",
        "price_range",
        f"{name} must be a number",
    )


def year_range(
    field: str = "year",
    *,
    label: str | None = None,
    today: Callable[[], date] = date.today,
) -> ValidationRule:
    """Numeric range ``[1900, current year + 1]``.

    The upper bound is read from ``today`` on every check, so a long-running
    process follows the calendar.
    """
    name = _label(field, label or "Year")
    return _range_rule(
        field,
        lambda: (YEAR_MIN, today().year + 1),
        lambda low, high: f"{name} must be between {low} and {high}",
        "INVALID_YEAR_RANGE",
        "year_range",
        f"{name} must be a number",
    )


def one_of(
    field: str, allowed_values: Iterable[Any], *, label: str | None = None
) -> ValidationRule:
    """Fail unless the value exactly matches one of ``allowed_values``.

    Matching requires equal type as well as equal value, so ``True`` does not
    match ``1``.
    """
    allowed = tuple(allowed_values)
    message = f"{_label(field, label)} must be one of: {', '.join(map(str, allowed))}"

    def check(value: Any, data: Any) -> RuleOutcome:
        if any(type(value) is type(option) and value == option for option in allowed):
            return RuleOutcome.ok()
        return RuleOutcome.fail(message, "INVALID_VALUE")

    return ValidationRule(field=field, check=check, name="one_of")


def uuid(field: str, *, label: str | None = None) -> ValidationRule:
    """Fail if a present value is not a canonical textual UUID."""
    message = f"{_label(field, label)} must be a valid UUID"

    def check(value: Any, data: Any) -> RuleOutcome:
        if value is MISSING or value is None:
            return RuleOutcome.ok()
        if isinstance(value, str) and UUID_PATTERN.fullmatch(value):
            return RuleOutcome.ok()
        return RuleOutcome.fail(message, "INVALID_UUID")

    return ValidationRule(field=field, check=check, name="uuid")


def boolean(field: str, *, label: str | None = None) -> ValidationRule:
    """Fail unless the value is exactly True or False."""
    message = f"{_label(field, label)} must be true or false"

    def check(value: Any, data: Any) -> RuleOutcome:
        if value is True or value is False:
            return RuleOutcome.ok()
        return RuleOutcome.fail(message, "INVALID_BOOLEAN")

    return ValidationRule(field=field, check=check, name="boolean")


def password_strength(field: str = "password", *, label: str | None = None) -> ValidationRule:
    """Enforce the password policy.

    Policy: at least 8 characters with one uppercase letter, one lowercase
    letter, one digit and one symbol. The failure message lists every
    requirement the value misses. The value is never echoed in errors.
    """
    name = _label(field, label or "Password")

    def check(value: Any, data: Any) -> RuleOutcome:
        password = value if isinstance(value, str) else ""
        missing: list[str] = []
        if len(password) < PASSWORD_MIN_LENGTH:
            missing.append(f"at least {PASSWORD_MIN_LENGTH} characters")
        if not any(c.isupper() for c in password):
            missing.append("one uppercase letter")
        if not any(c.islower() for c in password):
            missing.append("one lowercase letter")
        if not any(c.isdigit() for c in password):
            missing.append("one number")
        if not any(not c.isalnum() and not c.isspace() for c in password):
            missing.append("one symbol")
        if missing:
            return RuleOutcome.fail(f"{name} must contain {', '.join(missing)}", "WEAK_PASSWORD")
        return RuleOutcome.ok()

    return ValidationRule(field=field, check=check, name="password_strength", echo_value=False)


def array_not_empty(field: str, *, label: str | None = None) -> ValidationRule:
    """Fail unless the value is a non-empty sequence (strings excluded)."""
    message = f"{_label(field, label)} must contain at least one item"

    def check(value: Any, data: Any) -> RuleOutcome:
        if _is_sequence(value) and len(value) > 0:
            return RuleOutcome.ok()
        return RuleOutcome.fail(message, "ARRAY_EMPTY")

    return ValidationRule(field=field, check=check, name="array_not_empty")


def array_length(
    field: str, min: int, max: int, *, label: str | None = None
) -> ValidationRule:
    """Fail unless the value is a sequence with ``min <= len <= max`` items."""
    name = _label(field, label)

    def check(value: Any, data: Any) -> RuleOutcome:
        if not _is_sequence(value):
            return RuleOutcome.fail(f"{name} must be an array", "INVALID_TYPE")
        if min <= len(value) <= max:
            return RuleOutcome.ok()
        return RuleOutcome.fail(
            f"{name} must contain between {min} and {max} items", "ARRAY_LENGTH"
        )

    return ValidationRule(field=field, check=check, name="array_length")


def pattern(
    field: str,
    regex: str | re.Pattern[str],
    message: str | None = None,
    *,
    code: str = "PATTERN_MISMATCH",
    label: str | None = None,
) -> ValidationRule:
    """Fail if a present value does not fully match ``regex``."""
    compiled = re.compile(regex) if isinstance(regex, str) else regex
    text = message or f"{_label(field, label)} has an invalid format"

    def check(value: Any, data: Any) -> RuleOutcome:
        if value is MISSING or value is None:
            return RuleOutcome.ok()
        if isinstance(value, str) and compiled.fullmatch(value):
            return RuleOutcome.ok()
        return RuleOutcome.fail(text, code)

    return ValidationRule(field=field, check=check, name="pattern")


def optional(rule: ValidationRule) -> ValidationRule:
    """Return a copy of ``rule`` that passes when the value is empty."""
    return dataclasses.replace(rule, optional=True)
