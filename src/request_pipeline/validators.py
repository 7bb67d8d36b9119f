"""Validation framework: run ordered rule sets against request input.

Every rule runs; failures are collected in declaration order instead of
stopping at the first one, so callers see all violations at once.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Iterator
from typing import Any, Union

from request_pipeline.events import (
    ObservableMixin,
    PipelineEvent,
    PipelineEventType,
)
from request_pipeline.results import ValidationError, ValidationVerdict
from request_pipeline.rules import ValidationRule, custom

__all__ = ["RuleSet", "RuleSetBuilder", "combine", "custom", "validate"]

RuleSource = Union["RuleSet", Iterable[ValidationRule]]


def validate(data: Any, rules: Iterable[ValidationRule]) -> ValidationVerdict:
    """Validate ``data`` against ``rules`` and return a verdict.

    Args:
        data: Mapping or object to validate. None is treated as an input with
            every field absent.
        rules: Rules to run, in declaration order.

    Returns:
        ValidationVerdict with every failure, in rule order.

    Example:
        verdict = validate(body, [required("email"), email("email")])
        if not verdict.valid:
            return error(ErrorKind.VALIDATION, verdict.summary(), verdict.to_details())
    """
    subject = {} if data is None else data
    errors: list[ValidationError] = []
    for rule in rules:
        failure = rule.evaluate(subject)
        if failure is not None:
            errors.append(failure)
    return ValidationVerdict(errors=tuple(errors))


def combine(*rule_sets: RuleSource, name: str = "combined") -> RuleSet:
    """Merge rule sets with AND semantics.

    The merged rule order is the first set's rules followed by the next
    set's, so error ordering is preserved across the merge.
    """
    rules: list[ValidationRule] = []
    for rule_set in rule_sets:
        rules.extend(rule_set)
    return RuleSet(rules, name=name)


class RuleSet(ObservableMixin):
    """Named, immutable collection of rules.

    Supports the Observer pattern - add observers to receive
    VALIDATION_STARTED and VALIDATION_COMPLETED events.

    Example:
        signup = RuleSet(
            [required("email"), email("email"), password_strength()],
            name="signup",
        )
        verdict = signup.validate(body)

        everything = signup + profile_rules  # same as combine(signup, profile_rules)
    """

    def __init__(self, rules: Iterable[ValidationRule] = (), *, name: str = "rules") -> None:
        self._rules: tuple[ValidationRule, ...] = tuple(rules)
        self._name = name

    @property
    def name(self) -> str:
        """Name of this rule set."""
        return self._name

    @property
    def rules(self) -> tuple[ValidationRule, ...]:
        """The rules, in declaration order."""
        return self._rules

    @property
    def fields(self) -> list[str]:
        """Distinct field paths covered by this rule set, in order."""
        return list(dict.fromkeys(rule.field for rule in self._rules))

    def validate(self, data: Any) -> ValidationVerdict:
        """Run every rule against ``data``.

        Note:
            Emits VALIDATION_STARTED before and VALIDATION_COMPLETED after
            running the rules.
        """
        start_time = time.perf_counter()

        self.notify(
            PipelineEvent(
                event_type=PipelineEventType.VALIDATION_STARTED,
                source=self,
                data={"rule_set": self._name, "rule_count": len(self._rules)},
            )
        )

        verdict = validate(data, self._rules)

        duration_ms = (time.perf_counter() - start_time) * 1000

        self.notify(
            PipelineEvent(
                event_type=PipelineEventType.VALIDATION_COMPLETED,
                source=self,
                data={
                    "rule_set": self._name,
                    "valid": verdict.valid,
                    "error_count": len(verdict.errors),
                    "duration_ms": duration_ms,
                },
            )
        )

        return verdict

    def __add__(self, other: RuleSource) -> RuleSet:
        if not isinstance(other, (RuleSet, list, tuple)):
            return NotImplemented
        return combine(self, other, name=self._name)

    def __iter__(self) -> Iterator[ValidationRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"RuleSet(name={self._name!r}, fields={self.fields})"


class RuleSetBuilder:
    """Fluent builder for rule sets.

    Example:
        listing_rules = (
            RuleSetBuilder("create_listing")
            .add(required("title"))
            .add(length_range("title", 10, 100))
            .extend([price_range(), year_range()])
            .build()
        )
    """

    def __init__(self, name: str = "rules") -> None:
        """Initialize the builder.

        Args:
            name: Name for the resulting RuleSet.
        """
        self._rules: list[ValidationRule] = []
        self._name = name

    def add(self, rule: ValidationRule) -> RuleSetBuilder:
        """Append one rule. Returns self for chaining."""
        self._rules.append(rule)
        return self

    def extend(self, rules: RuleSource) -> RuleSetBuilder:
        """Append several rules, keeping their order. Returns self for chaining."""
        self._rules.extend(rules)
        return self

    def with_name(self, name: str) -> RuleSetBuilder:
        """Set the name for the resulting RuleSet."""
        self._name = name
        return self

    def build(self) -> RuleSet:
        """Build the RuleSet."""
        return RuleSet(self._rules, name=self._name)

    def __repr__(self) -> str:
        return f"RuleSetBuilder(name={self._name!r}, rules={len(self._rules)})"
