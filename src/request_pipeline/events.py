"""Observer pattern implementation for pipeline events.

Provides event types, observer protocol, and mixin for adding observer
support to rule sets and response handlers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Protocol, runtime_checkable

import structlog

from request_pipeline.log import LOGGER_NAME

__all__ = [
    "PipelineEventType",
    "PipelineEvent",
    "PipelineObserver",
    "ObservableMixin",
]

_logger = structlog.get_logger(LOGGER_NAME)


class PipelineEventType(Enum):
    """Types of pipeline events that can be observed."""

    VALIDATION_STARTED = auto()
    """Emitted when a rule set begins validating an input."""

    VALIDATION_COMPLETED = auto()
    """Emitted when a rule set finishes validating an input."""

    REQUEST_STARTED = auto()
    """Emitted when a wrapped handler receives a request."""

    REQUEST_COMPLETED = auto()
    """Emitted when a wrapped handler has produced its response."""


@dataclass
class PipelineEvent:
    """A pipeline event that can be observed.

    Attributes:
        event_type: The type of event that occurred.
        source: The object that emitted the event (rule set or handler).
        data: Event-specific data dictionary.

    Example:
        event = PipelineEvent(
            event_type=PipelineEventType.REQUEST_COMPLETED,
            source=handler,
            data={"request_id": "abc", "status_code": 200, "elapsed_ms": 3.1},
        )
    """

    event_type: PipelineEventType
    source: object
    data: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class PipelineObserver(Protocol):
    """Protocol for pipeline event observers.

    Implement this protocol to receive pipeline events. Observers
    can be used for metrics collection, console output, alerting, etc.

    Example:
        class SlowRequestObserver:
            def on_event(self, event: PipelineEvent) -> None:
                if event.data.get("elapsed_ms", 0) > 500:
                    alert(event.data["request_id"])
    """

    def on_event(self, event: PipelineEvent) -> None:
        """Handle a pipeline event.

        Args:
            event: The pipeline event to handle.
        """
        ...


class ObservableMixin:
    """Mixin class to add observer support to any class.

    Observers are registered at setup time. Emitting an event does not
    change the emitter's state, so observable objects stay safe to share
    between concurrent requests once configured.
    """

    _observers: list[PipelineObserver]

    def _ensure_observers(self) -> None:
        """Ensure the observers list is initialized."""
        if not hasattr(self, "_observers") or self._observers is None:
            self._observers = []

    def add_observer(self, observer: PipelineObserver) -> None:
        """Add an observer to receive pipeline events.

        Args:
            observer: An object implementing the PipelineObserver protocol.
        """
        self._ensure_observers()
        if observer not in self._observers:
            self._observers.append(observer)

    def remove_observer(self, observer: PipelineObserver) -> None:
        """Remove an observer from receiving pipeline events."""
        self._ensure_observers()
        if observer in self._observers:
            self._observers.remove(observer)

    def notify(self, event: PipelineEvent) -> None:
        """Notify all observers of a pipeline event.

        An observer that raises does not stop delivery to the others; the
        failure goes to ``_observer_failed`` and never reaches the emitter's
        caller.

        Args:
            event: The event to broadcast to observers.
        """
        self._ensure_observers()
        for observer in list(self._observers):
            try:
                observer.on_event(event)
            except Exception as exc:
                self._observer_failed(observer, event, exc)

    def _observer_failed(
        self, observer: PipelineObserver, event: PipelineEvent, exc: Exception
    ) -> None:
        """Log an observer failure as a warning. Override to route it elsewhere."""
        _logger.warning(
            "observer.failed",
            event_type=event.event_type.name,
            observer=type(observer).__name__,
            error=str(exc),
        )

    @property
    def observers(self) -> list[PipelineObserver]:
        """Get a copy of the current observers list."""
        self._ensure_observers()
        return self._observers.copy()

    def clear_observers(self) -> None:
        """Remove all observers."""
        self._ensure_observers()
        self._observers.clear()
