"""Unified response handling for request handlers.

ResponseHandler is the single translation point between a ServiceResult (or
a raised exception) and a transport response. It is also the logging and
timing boundary: every wrapped invocation writes exactly one completion
entry carrying the request id and elapsed time, whatever the outcome.
"""

from __future__ import annotations

import inspect
import json
import time
import uuid
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any

from pydantic import BaseModel
from pydantic_core import to_jsonable_python

from request_pipeline.common_rules import required
from request_pipeline.errors import ServiceFailure
from request_pipeline.events import (
    ObservableMixin,
    PipelineEvent,
    PipelineEventType,
    PipelineObserver,
)
from request_pipeline.log import StructlogSink
from request_pipeline.protocols import Clock, LogSink
from request_pipeline.service_result import ErrorKind, ServiceResult
from request_pipeline.service_result import error as _error
from request_pipeline.service_result import success as _success
from request_pipeline.settings import PipelineSettings, get_settings
from request_pipeline.validators import validate

__all__ = [
    "ResponseHandler",
    "SystemClock",
    "TransportResponse",
    "WrappedHandler",
    "default_handler",
    "error",
    "handle_service_result",
    "success",
    "try_async",
    "validate_required",
    "wrap_handler",
]

REQUEST_ID_HEADER = "x-request-id"

WrappedHandler = Callable[..., Awaitable["TransportResponse"]]


class TransportResponse(BaseModel):
    """Transport-level response: status, headers and a JSON-ready body."""

    model_config = {"frozen": True}

    status_code: int
    headers: dict[str, str]
    body: dict[str, Any]

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json_body(self) -> str:
        """Serialize the body for the wire."""
        return json.dumps(self.body, separators=(",", ":"))


class SystemClock:
    """Clock backed by ``time.perf_counter``."""

    def now(self) -> float:
        return time.perf_counter()


def _request_id_from(request: Any) -> str | None:
    if not isinstance(request, Mapping):
        return None
    context = request.get("requestContext")
    if isinstance(context, Mapping) and context.get("requestId"):
        return str(context["requestId"])
    headers = request.get("headers")
    if isinstance(headers, Mapping):
        for name, value in headers.items():
            if isinstance(name, str) and name.lower() == REQUEST_ID_HEADER and value:
                return str(value)
    return None


class ResponseHandler(ObservableMixin):
    """Convert service results and failures into transport responses.

    Example:
        responses = ResponseHandler()

        async def get_listing(request):
            listing = await store.get({"id": request["pathParameters"]["id"]})
            if listing is None:
                return responses.error(ErrorKind.NOT_FOUND, "Listing not found")
            return responses.success(listing)

        handler = responses.wrap_handler(get_listing, operation="get_listing")
        response = await handler(event)
    """

    def __init__(
        self,
        settings: PipelineSettings | None = None,
        sink: LogSink | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._sink: LogSink = sink or StructlogSink()
        self._clock: Clock = clock or SystemClock()

    @property
    def settings(self) -> PipelineSettings:
        return self._settings

    # ------------------------------------------------------------------
    # Result constructors
    # ------------------------------------------------------------------

    @staticmethod
    def success(data: Any = None, meta: dict[str, Any] | None = None) -> ServiceResult:
        """Create a success result."""
        return _success(data, meta)

    @staticmethod
    def error(kind: ErrorKind | str, message: str, details: Any = None) -> ServiceResult:
        """Create an error result."""
        return _error(kind, message, details)

    # ------------------------------------------------------------------
    # Translation
    # ------------------------------------------------------------------

    def handle_service_result(
        self,
        result: ServiceResult,
        *,
        request_id: str | None = None,
        elapsed_ms: float = 0.0,
        success_code: int = 200,
    ) -> TransportResponse:
        """Map a ServiceResult to a transport response.

        Args:
            result: Outcome of the business operation.
            request_id: Correlation id; generated when omitted.
            elapsed_ms: Elapsed time to report in the body.
            success_code: Status for success, e.g. 201 for creation.

        Returns:
            TransportResponse with ``{data, requestId, elapsedMs}`` on success
            or ``{error: {kind, message, details?}, requestId, elapsedMs}``.
        """
        request_id = request_id or str(uuid.uuid4())
        elapsed_ms = round(elapsed_ms, 3)

        if result.success:
            body: dict[str, Any] = {
                "data": to_jsonable_python(result.data),
                "requestId": request_id,
                "elapsedMs": elapsed_ms,
            }
            if result.meta:
                body["meta"] = to_jsonable_python(result.meta)
            return TransportResponse(
                status_code=success_code,
                headers=self._settings.response_headers(),
                body=body,
            )

        if result.error is None:
            raise TypeError("failed ServiceResult carries no error")
        kind = result.error.kind
        payload: dict[str, Any] = {"kind": kind.value}
        if kind is ErrorKind.INTERNAL:
            payload["message"] = self._settings.internal_error_message
        else:
            payload["message"] = result.error.message
            if result.error.details is not None:
                payload["details"] = to_jsonable_python(result.error.details)

        return TransportResponse(
            status_code=kind.status_code,
            headers=self._settings.response_headers(),
            body={"error": payload, "requestId": request_id, "elapsedMs": elapsed_ms},
        )

    # ------------------------------------------------------------------
    # Execution wrapping
    # ------------------------------------------------------------------

    def wrap_handler(
        self,
        fn: Callable[[Any], ServiceResult | Awaitable[ServiceResult]],
        *,
        operation: str = "handler",
        success_code: int = 200,
    ) -> WrappedHandler:
        """Wrap business logic so every exit path becomes a response.

        Args:
            fn: Called with the request; may be sync or async. Must return a
                ServiceResult or raise.
            operation: Operation name for logs and events.
            success_code: Status for success responses.

        Returns:
            Async callable ``(request=None, *, request_id=None)`` that never
            raises.
        """

        async def handler(
            request: Any = None, *, request_id: str | None = None
        ) -> TransportResponse:
            rid = request_id or _request_id_from(request) or str(uuid.uuid4())
            start = self._clock.now()
            self._emit(
                PipelineEventType.REQUEST_STARTED,
                {"request_id": rid, "operation": operation},
            )

            exc: BaseException | None = None
            try:
                outcome = fn(request)
                if inspect.isawaitable(outcome):
                    outcome = await outcome
                if not isinstance(outcome, ServiceResult):
                    raise TypeError(
                        f"{operation} returned {type(outcome).__name__}, expected ServiceResult"
                    )
                result = outcome
            except ServiceFailure as failure:
                exc = failure
                result = failure.to_result()
            except Exception as unexpected:
                exc = unexpected
                result = _error(ErrorKind.INTERNAL, str(unexpected) or type(unexpected).__name__)

            elapsed_ms = (self._clock.now() - start) * 1000
            try:
                response = self.handle_service_result(
                    result,
                    request_id=rid,
                    elapsed_ms=elapsed_ms,
                    success_code=success_code,
                )
            except Exception as unserializable:
                # data that cannot be rendered as JSON is a server fault
                exc = unserializable
                result = _error(ErrorKind.INTERNAL, f"Unserializable result: {unserializable}")
                response = self.handle_service_result(
                    result, request_id=rid, elapsed_ms=elapsed_ms
                )
            self._log_completion(operation, rid, result, response, elapsed_ms, exc)
            self._emit(
                PipelineEventType.REQUEST_COMPLETED,
                {
                    "request_id": rid,
                    "operation": operation,
                    "status_code": response.status_code,
                    "kind": result.error.kind.value if result.error else None,
                    "elapsed_ms": elapsed_ms,
                    "errors": _field_errors(result),
                },
            )
            return response

        handler.__name__ = getattr(fn, "__name__", operation)
        handler.__doc__ = getattr(fn, "__doc__", None)
        return handler

    async def try_async(self, fn: Callable[[], Any]) -> ServiceResult:
        """Run an operation and convert its outcome into a ServiceResult.

        A returned value becomes a success; a ServiceFailure keeps its kind;
        any other exception becomes INTERNAL.

        Example:
            result = await responses.try_async(lambda: store.get({"id": listing_id}))
        """
        try:
            value = fn()
            if inspect.isawaitable(value):
                value = await value
        except ServiceFailure as failure:
            return failure.to_result()
        except Exception as exc:
            self._sink.log(
                "debug",
                "operation.failed",
                {"error": str(exc), "error_type": type(exc).__name__},
            )
            return _error(ErrorKind.INTERNAL, str(exc) or type(exc).__name__)
        if isinstance(value, ServiceResult):
            return value
        return _success(value)

    @staticmethod
    def validate_required(data: Any, fields: Iterable[str]) -> ServiceResult | None:
        """Check that each field is present and non-empty.

        Returns:
            None when all fields are present, otherwise a VALIDATION result
            naming every missing field.
        """
        verdict = validate(data, [required(f) for f in fields])
        if verdict.valid:
            return None
        return _error(
            ErrorKind.VALIDATION,
            f"Missing required fields: {', '.join(verdict.fields)}",
            verdict.to_details(),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _log_completion(
        self,
        operation: str,
        request_id: str,
        result: ServiceResult,
        response: TransportResponse,
        elapsed_ms: float,
        exc: BaseException | None,
    ) -> None:
        context: dict[str, Any] = {
            "request_id": request_id,
            "operation": operation,
            "status_code": response.status_code,
            "elapsed_ms": round(elapsed_ms, 3),
        }
        if result.error is None:
            self._sink.log("info", "request.completed", context)
            return

        kind = result.error.kind
        context["kind"] = kind.value
        if kind is ErrorKind.INTERNAL:
            context["error"] = result.error.message
            if exc is not None:
                context["error_type"] = type(exc).__name__
                context["exc_info"] = exc
            self._sink.log("error", "request.failed", context)
        else:
            context["error"] = result.error.message
            self._sink.log("info", "request.rejected", context)

    def _emit(self, event_type: PipelineEventType, data: dict[str, Any]) -> None:
        self.notify(PipelineEvent(event_type=event_type, source=self, data=data))

    def _observer_failed(
        self, observer: PipelineObserver, event: PipelineEvent, exc: Exception
    ) -> None:
        self._sink.log(
            "warning",
            "observer.failed",
            {
                "event_type": event.event_type.name,
                "observer": type(observer).__name__,
                "error": str(exc),
                "request_id": event.data.get("request_id"),
            },
        )


def _field_errors(result: ServiceResult) -> list[tuple[str, str]]:
    if result.error is None or result.error.kind is not ErrorKind.VALIDATION:
        return []
    details = result.error.details
    if not isinstance(details, list):
        return []
    return [
        (str(d.get("field")), str(d.get("message")))
        for d in details
        if isinstance(d, Mapping) and "field" in d
    ]


_default_handler: ResponseHandler | None = None


def default_handler() -> ResponseHandler:
    global _default_handler
    if _default_handler is None:
        _default_handler = ResponseHandler()
    return _default_handler


def handle_service_result(result: ServiceResult, **kwargs: Any) -> TransportResponse:
    """``ResponseHandler.handle_service_result`` on the default handler."""
    return default_handler().handle_service_result(result, **kwargs)


def wrap_handler(
    fn: Callable[[Any], ServiceResult | Awaitable[ServiceResult]], **kwargs: Any
) -> WrappedHandler:
    """``ResponseHandler.wrap_handler`` on the default handler."""
    return default_handler().wrap_handler(fn, **kwargs)


async def try_async(fn: Callable[[], Any]) -> ServiceResult:
    """``ResponseHandler.try_async`` on the default handler."""
    return await default_handler().try_async(fn)


success = ResponseHandler.success
error = ResponseHandler.error
validate_required = ResponseHandler.validate_required
