"""Handler composition: validate, execute, translate, respond.

``endpoint`` turns a business function into a transport entry point with a
uniform shape. Validation runs inside the response handler boundary, so a
rejected request is timed and logged like any other.
"""

from __future__ import annotations

import inspect
import json
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any, Union

from request_pipeline.errors import ValidationFailure
from request_pipeline.response_handler import ResponseHandler, WrappedHandler, default_handler
from request_pipeline.rules import ValidationRule
from request_pipeline.service_result import ErrorKind, ServiceResult, error
from request_pipeline.validators import RuleSet

__all__ = ["endpoint", "parse_body"]

BusinessFn = Callable[[Any], Union[ServiceResult, Awaitable[ServiceResult]]]


def parse_body(request: Any) -> Any:
    """Return the decoded ``body`` of a request mapping.

    A JSON string is decoded, a mapping is passed through and a missing body
    is an empty dict.

    Raises:
        ValidationFailure: If the body is not valid JSON.
    """
    if not isinstance(request, Mapping):
        return {}
    body = request.get("body")
    if body is None or body == "":
        return {}
    if isinstance(body, (str, bytes, bytearray)):
        try:
            return json.loads(body)
        except ValueError as exc:
            raise ValidationFailure(
                "Invalid JSON in request body",
                [{"field": "body", "message": str(exc), "code": "INVALID_JSON"}],
            ) from exc
    return body


def endpoint(
    rules: RuleSet | Iterable[ValidationRule] = (),
    *,
    operation: str | None = None,
    success_code: int = 200,
    payload: Callable[[Any], Any] | None = None,
    handler: ResponseHandler | None = None,
) -> Callable[[BusinessFn], WrappedHandler]:
    """Decorate business logic with validation and response handling.

    Args:
        rules: Rules checked before the business logic runs.
        operation: Operation name for logs; defaults to the function name.
        success_code: Status for success, e.g. 201 for creation.
        payload: Selects what is validated from the request, e.g.
            ``parse_body``. Defaults to the request itself.
        handler: ResponseHandler to use; defaults to the shared one.

    Example:
        @endpoint(
            [required("title"), price_range(), year_range()],
            payload=parse_body,
            success_code=201,
        )
        async def create_listing(request):
            listing = await listings.create(parse_body(request))
            return success(listing)

        response = await create_listing(event)
    """
    rule_set = rules if isinstance(rules, RuleSet) else RuleSet(rules)

    def decorate(fn: BusinessFn) -> WrappedHandler:
        op = operation or getattr(fn, "__name__", "handler")

        async def run(request: Any) -> ServiceResult:
            subject = payload(request) if payload is not None else request
            verdict = rule_set.validate(subject)
            if not verdict.valid:
                return error(ErrorKind.VALIDATION, verdict.summary(), verdict.to_details())
            outcome = fn(request)
            if inspect.isawaitable(outcome):
                outcome = await outcome
            return outcome

        run.__name__ = getattr(fn, "__name__", op)
        responses = handler or default_handler()
        return responses.wrap_handler(run, operation=op, success_code=success_code)

    return decorate
