"""Protocols for the pipeline's collaborators.

The pipeline talks to logging, time and persistence only through these
narrow interfaces. Use them for type hints and to plug in test doubles.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from request_pipeline.results import ValidationError

__all__ = ["Clock", "LogSink", "RecordStore", "RuleProtocol"]


@runtime_checkable
class RuleProtocol(Protocol):
    """Anything that can evaluate itself against an input object."""

    field: str

    def evaluate(self, data: Any) -> ValidationError | None:
        """Return a field error, or None when the input passes."""
        ...


@runtime_checkable
class LogSink(Protocol):
    """Destination for structured log entries.

    Implementations must write each entry atomically; the pipeline logs from
    concurrent requests without coordination.
    """

    def log(self, level: str, message: str, context: Mapping[str, Any]) -> None:
        """Write one entry. ``level`` is a lowercase level name."""
        ...


@runtime_checkable
class Clock(Protocol):
    """Monotonic time source, in seconds."""

    def now(self) -> float:
        ...


@runtime_checkable
class RecordStore(Protocol):
    """Key-value persistence layer consumed by business logic."""

    async def get(self, key: Mapping[str, Any]) -> dict[str, Any] | None:
        ...

    async def put(self, item: Mapping[str, Any]) -> None:
        ...

    async def batch_get(self, keys: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
        ...

    async def batch_write(self, items: Iterable[Mapping[str, Any]]) -> None:
        ...

    async def query(self, key_name: str, key_value: Any) -> list[dict[str, Any]]:
        ...
