"""Request validation and response handling for service entry points."""

from request_pipeline import common_rules
from request_pipeline.errors import (
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    ServiceFailure,
    UnauthorizedError,
    ValidationFailure,
    classify,
)
from request_pipeline.events import (
    ObservableMixin,
    PipelineEvent,
    PipelineEventType,
    PipelineObserver,
)
from request_pipeline.handler import endpoint, parse_body
from request_pipeline.log import StructlogSink, configure_logging
from request_pipeline.protocols import Clock, LogSink, RecordStore, RuleProtocol
from request_pipeline.response_handler import (
    ResponseHandler,
    SystemClock,
    TransportResponse,
    handle_service_result,
    try_async,
    validate_required,
    wrap_handler,
)
from request_pipeline.results import ValidationError, ValidationVerdict
from request_pipeline.rules import MISSING, RuleOutcome, ValidationRule, custom, resolve_field
from request_pipeline.service_result import (
    STATUS_CODES,
    ErrorKind,
    ServiceError,
    ServiceResult,
    error,
    success,
)
from request_pipeline.settings import PipelineSettings, get_settings
from request_pipeline.stats import RequestStats, StatsObserver
from request_pipeline.validators import RuleSet, RuleSetBuilder, combine, validate

# Lazy imports for optional dependencies (rich)
_RICH_NAMES = frozenset({"ConsoleRequestObserver", "RequestDashboardObserver"})


def __getattr__(name: str) -> type:
    """Lazy import for optional dependencies.

    The console observers require the optional 'rich' package. They are
    only loaded when first accessed, avoiding import errors when rich is
    not installed.

    Raises:
        ImportError: If rich is not installed and a rich observer is requested.
        AttributeError: If the requested attribute doesn't exist.
    """
    if name in _RICH_NAMES:
        try:
            import rich  # noqa: F401

            from request_pipeline.rich_observers import (
                ConsoleRequestObserver,
                RequestDashboardObserver,
            )
        except ImportError as e:
            raise ImportError(
                f"{name} requires rich. Install with: pip install request-pipeline[rich]"
            ) from e
        _components = {
            "ConsoleRequestObserver": ConsoleRequestObserver,
            "RequestDashboardObserver": RequestDashboardObserver,
        }
        return _components[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # Result envelope
    "ErrorKind",
    "STATUS_CODES",
    "ServiceError",
    "ServiceResult",
    "success",
    "error",
    # Failures
    "ServiceFailure",
    "ValidationFailure",
    "NotFoundError",
    "UnauthorizedError",
    "ForbiddenError",
    "ConflictError",
    "InternalError",
    "classify",
    # Rules and validation
    "MISSING",
    "RuleOutcome",
    "ValidationRule",
    "ValidationError",
    "ValidationVerdict",
    "RuleSet",
    "RuleSetBuilder",
    "common_rules",
    "combine",
    "custom",
    "resolve_field",
    "validate",
    # Response handling
    "ResponseHandler",
    "SystemClock",
    "TransportResponse",
    "handle_service_result",
    "try_async",
    "validate_required",
    "wrap_handler",
    "endpoint",
    "parse_body",
    # Collaborators
    "Clock",
    "LogSink",
    "RecordStore",
    "RuleProtocol",
    # Config and logging
    "PipelineSettings",
    "get_settings",
    "StructlogSink",
    "configure_logging",
    # Observer pattern
    "ObservableMixin",
    "PipelineEvent",
    "PipelineEventType",
    "PipelineObserver",
    "RequestStats",
    "StatsObserver",
    # Rich observers (lazy-loaded, requires rich optional dependency)
    "ConsoleRequestObserver",
    "RequestDashboardObserver",
]

__version__ = "0.1.0"
