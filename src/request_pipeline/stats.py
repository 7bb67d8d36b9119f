"""Request statistics collected from pipeline events.

RequestStats is safe to update from concurrent requests; StatsObserver
feeds it from REQUEST_COMPLETED events.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from threading import Lock
from typing import Any

from request_pipeline.events import PipelineEvent, PipelineEventType

__all__ = ["OK", "RequestStats", "StatsObserver"]

OK = "OK"


@dataclass
class RequestStats:
    """Running tally of handled requests.

    Attributes:
        total: Number of completed requests.
        by_kind: Count per outcome; successes are counted under ``"OK"``.
        total_ms: Sum of elapsed times.
        max_ms: Slowest request seen.
        error_counts: Counter of (field, message) validation failures.
    """

    total: int = 0
    by_kind: Counter[str] = field(default_factory=Counter)
    total_ms: float = 0.0
    max_ms: float = 0.0
    error_counts: Counter[tuple[str, str]] = field(default_factory=Counter)
    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    def record(
        self,
        kind: str | None,
        elapsed_ms: float,
        errors: list[tuple[str, str]] | None = None,
    ) -> None:
        """Record one completed request.

        Args:
            kind: ErrorKind value, or None for success.
            elapsed_ms: Request duration in milliseconds.
            errors: (field, message) pairs for validation failures.
        """
        with self._lock:
            self.total += 1
            self.by_kind[kind or OK] += 1
            self.total_ms += elapsed_ms
            self.max_ms = max(self.max_ms, elapsed_ms)
            for pair in errors or ():
                self.error_counts[pair] += 1

    @property
    def average_ms(self) -> float:
        """Mean request duration in milliseconds."""
        if self.total == 0:
            return 0.0
        return self.total_ms / self.total

    @property
    def error_rate(self) -> float:
        """Percentage (0-100) of requests that did not succeed."""
        if self.total == 0:
            return 0.0
        return (self.total - self.by_kind[OK]) / self.total * 100

    def top_errors(self, n: int = 10) -> list[tuple[tuple[str, str], int, float]]:
        """Get top N validation errors with counts and percentages.

        Returns:
            List of ((field, message), count, percentage) tuples,
            sorted by count descending.
        """
        with self._lock:
            common = self.error_counts.most_common(n)
            total_errors = sum(self.error_counts.values())
        return [
            (pair, count, (count / total_errors * 100) if total_errors else 0.0)
            for pair, count in common
        ]

    def snapshot(self) -> dict[str, Any]:
        """Point-in-time copy of the counters."""
        with self._lock:
            return {
                "total": self.total,
                "by_kind": dict(self.by_kind),
                "average_ms": self.total_ms / self.total if self.total else 0.0,
                "max_ms": self.max_ms,
            }


class StatsObserver:
    """Observer that records every completed request into a RequestStats.

    Example:
        stats = RequestStats()
        responses.add_observer(StatsObserver(stats))
        ...
        print(stats.error_rate, stats.top_errors(5))
    """

    def __init__(self, stats: RequestStats | None = None) -> None:
        self.stats = stats if stats is not None else RequestStats()

    def on_event(self, event: PipelineEvent) -> None:
        if event.event_type is not PipelineEventType.REQUEST_COMPLETED:
            return
        self.stats.record(
            event.data.get("kind"),
            float(event.data.get("elapsed_ms", 0.0)),
            event.data.get("errors"),
        )
