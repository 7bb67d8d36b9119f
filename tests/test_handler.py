"""Tests for endpoint composition and request body parsing."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest
from structlog.testing import capture_logs

from request_pipeline import common_rules as rules
from request_pipeline.errors import NotFoundError, ValidationFailure
from request_pipeline.events import PipelineEvent
from request_pipeline.handler import endpoint, parse_body
from request_pipeline.protocols import RecordStore
from request_pipeline.response_handler import ResponseHandler
from request_pipeline.service_result import ErrorKind, ServiceResult, error, success
from request_pipeline.validators import RuleSet

from .conftest import InMemoryStore, RecordingSink


def run(coro: Any) -> Any:
    return asyncio.run(coro)


def body_event(body: Any, **extra: Any) -> dict[str, Any]:
    return {"body": json.dumps(body), **extra}


# =============================================================================
# parse_body
# =============================================================================


class TestParseBody:
    def test_json_string(self) -> None:
        assert parse_body({"body": '{"title": "Sea Ray"}'}) == {"title": "Sea Ray"}

    def test_bytes(self) -> None:
        assert parse_body({"body": b'{"n": 1}'}) == {"n": 1}

    @pytest.mark.parametrize("request_", [{}, {"body": None}, {"body": ""}, None, "raw"])
    def test_missing_body_is_empty(self, request_: Any) -> None:
        assert parse_body(request_) == {}

    def test_mapping_passthrough(self) -> None:
        body = {"title": "x"}

        assert parse_body({"body": body}) is body

    def test_invalid_json(self) -> None:
        with pytest.raises(ValidationFailure) as exc_info:
            parse_body({"body": "{not json"})

        failure = exc_info.value
        assert failure.kind is ErrorKind.VALIDATION
        assert str(failure) == "Invalid JSON in request body"
        assert failure.details[0]["code"] == "INVALID_JSON"


# =============================================================================
# endpoint
# =============================================================================


class TestEndpoint:
    def test_valid_request_reaches_business_logic(self, responses: ResponseHandler) -> None:
        @endpoint([rules.required("title")], payload=parse_body, handler=responses)
        async def create(request: Any) -> ServiceResult:
            return success({"title": parse_body(request)["title"]})

        response = run(create(body_event({"title": "Sea Ray"})))

        assert response.status_code == 200
        assert response.body["data"] == {"title": "Sea Ray"}

    def test_validation_short_circuits(self, responses: ResponseHandler) -> None:
        calls: list[Any] = []

        @endpoint(
            [rules.required("email"), rules.email("email"), rules.numeric_range("age", 18, 120)],
            handler=responses,
        )
        def signup(request: Any) -> ServiceResult:
            calls.append(request)
            return success(None)

        response = run(signup({"email": "not-an-email", "age": 15}))

        assert calls == []
        assert response.status_code == 400
        assert response.body["error"]["kind"] == "VALIDATION"
        assert response.body["error"]["message"] == "Validation failed for 2 field(s)"
        details = response.body["error"]["details"]
        assert [(d["field"], d["code"]) for d in details] == [
            ("email", "INVALID_EMAIL"),
            ("age", "NUMERIC_RANGE"),
        ]

    def test_single_failure_message(self, responses: ResponseHandler) -> None:
        @endpoint([rules.price_range()], handler=responses)
        def create(request: Any) -> ServiceResult:
            return success(None)

        response = run(create({"price": 0}))

        assert response.body["error"]["message"] == "Price must be between $1 and $10,000,000"

    def test_success_code(self, responses: ResponseHandler) -> None:
        @endpoint(success_code=201, handler=responses)
        def create(request: Any) -> ServiceResult:
            return success({"id": "l1"})

        assert run(create({})).status_code == 201

    def test_returned_error_kept(self, responses: ResponseHandler) -> None:
        @endpoint(handler=responses)
        def update(request: Any) -> ServiceResult:
            return error(ErrorKind.CONFLICT, "Listing already sold")

        response = run(update({}))

        assert response.status_code == 409
        assert response.body["error"]["message"] == "Listing already sold"

    def test_invalid_json_is_rejected(self, responses: ResponseHandler) -> None:
        @endpoint([rules.required("title")], payload=parse_body, handler=responses)
        def create(request: Any) -> ServiceResult:
            return success(None)

        response = run(create({"body": "{oops"}))

        assert response.status_code == 400
        assert response.body["error"]["message"] == "Invalid JSON in request body"

    def test_accepts_rule_set(self, responses: ResponseHandler) -> None:
        rule_set = RuleSet([rules.required("id")], name="by_id")

        @endpoint(rule_set, handler=responses)
        def fetch(request: Any) -> ServiceResult:
            return success(request["id"])

        assert run(fetch({"id": "x"})).body["data"] == "x"
        assert run(fetch({})).status_code == 400

    def test_rule_set_observer_failure_does_not_fail_request(
        self, responses: ResponseHandler
    ) -> None:
        class BrokenObserver:
            def on_event(self, event: PipelineEvent) -> None:
                raise RuntimeError("metrics backend down")

        rule_set = RuleSet([rules.required("title")], name="create")
        rule_set.add_observer(BrokenObserver())

        @endpoint(rule_set, handler=responses)
        def create(request: Any) -> ServiceResult:
            return success({"title": request["title"]})

        with capture_logs() as logs:
            response = run(create({"title": "x"}))

        assert response.status_code == 200
        assert response.body["data"] == {"title": "x"}
        assert [e["event_type"] for e in logs if e["event"] == "observer.failed"] == [
            "VALIDATION_STARTED",
            "VALIDATION_COMPLETED",
        ]

    def test_operation_name_logged(self, responses: ResponseHandler, sink: RecordingSink) -> None:
        @endpoint([rules.required("id")], handler=responses)
        def get_dealer(request: Any) -> ServiceResult:
            return success(None)

        run(get_dealer({}))
        run(get_dealer({"id": "d1"}))

        assert [c["operation"] for _, _, c in sink.entries] == ["get_dealer", "get_dealer"]
        assert sink.messages() == ["request.rejected", "request.completed"]
        assert get_dealer.__name__ == "get_dealer"

    def test_explicit_operation(self, responses: ResponseHandler, sink: RecordingSink) -> None:
        @endpoint(operation="listings.get", handler=responses)
        def fetch(request: Any) -> ServiceResult:
            return success(None)

        run(fetch())

        assert sink.entries[0][2]["operation"] == "listings.get"

    def test_business_exception(self, responses: ResponseHandler) -> None:
        @endpoint(handler=responses)
        async def fetch(request: Any) -> ServiceResult:
            raise RuntimeError("dynamo throttled")

        response = run(fetch({}))

        assert response.status_code == 500
        assert response.body["error"]["message"] == "Internal server error"


# =============================================================================
# Integration with a record store
# =============================================================================


class TestListingFlow:
    """Create and fetch a listing through two composed endpoints."""

    def test_create_then_get(self, responses: ResponseHandler, store: InMemoryStore) -> None:
        create_rules = [
            rules.required("id"),
            rules.required("title"),
            rules.length_range("title", 3, 100),
            rules.price_range(),
            rules.year_range(),
            rules.optional(rules.one_of("status", ["active", "pending"])),
        ]

        @endpoint(create_rules, payload=parse_body, success_code=201, handler=responses)
        async def create_listing(request: Any) -> ServiceResult:
            listing = parse_body(request)
            if await store.get({"id": listing["id"]}) is not None:
                return error(ErrorKind.CONFLICT, "Listing already exists")
            await store.put(listing)
            return success(listing)

        @endpoint([rules.required("pathParameters.id")], handler=responses)
        async def get_listing(request: Any) -> ServiceResult:
            listing = await store.get({"id": request["pathParameters"]["id"]})
            if listing is None:
                raise NotFoundError("Listing not found")
            return success(listing)

        listing = {"id": "l1", "title": "Sea Ray 240", "price": 45_000, "year": 2019}

        created = run(create_listing(body_event(listing)))
        duplicate = run(create_listing(body_event(listing)))
        fetched = run(get_listing({"pathParameters": {"id": "l1"}}))
        missing = run(get_listing({"pathParameters": {"id": "nope"}}))
        no_id = run(get_listing({}))
        invalid = run(create_listing(body_event({"id": "l2", "title": "x", "price": 0})))

        assert created.status_code == 201
        assert duplicate.status_code == 409
        assert fetched.body["data"] == listing
        assert missing.status_code == 404
        assert missing.body["error"]["message"] == "Listing not found"
        assert no_id.status_code == 400
        assert invalid.status_code == 400
        assert [d["field"] for d in invalid.body["error"]["details"]] == [
            "title",
            "price",
            "year",
        ]
        assert list(store.items) == ["l1"]

    def test_store_satisfies_protocol(self, store: InMemoryStore) -> None:
        assert isinstance(store, RecordStore)
