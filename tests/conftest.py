"""Shared fixtures, test doubles and Hypothesis strategies for tests."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import pytest
from hypothesis import strategies as st

from request_pipeline.response_handler import ResponseHandler
from request_pipeline.settings import PipelineSettings

# -----------------------------------------------------------------------------
# Hypothesis Strategies
# -----------------------------------------------------------------------------

# Strategy for valid field names (letters only, no dots)
field_names = st.text(
    min_size=1,
    max_size=20,
    alphabet=st.characters(whitelist_categories=("Ll", "Lu")),
)

# Strategy for messages
messages = st.text(min_size=1, max_size=200)

# Strategy for JSON-like scalar values
scalars = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(),
    st.floats(allow_nan=False, allow_infinity=False),
    st.text(max_size=30),
)

# Strategy for flat input documents
documents = st.dictionaries(keys=field_names, values=scalars, max_size=8)


# -----------------------------------------------------------------------------
# Test Doubles
# -----------------------------------------------------------------------------


class FakeClock:
    """Clock that advances a fixed step on every read."""

    def __init__(self, step: float = 0.005) -> None:
        self._t = 100.0
        self._step = step

    def now(self) -> float:
        self._t += self._step
        return self._t


class RecordingSink:
    """LogSink that keeps every entry in memory."""

    def __init__(self) -> None:
        self.entries: list[tuple[str, str, dict[str, Any]]] = []

    def log(self, level: str, message: str, context: Mapping[str, Any]) -> None:
        self.entries.append((level, message, dict(context)))

    def levels(self) -> list[str]:
        return [level for level, _, _ in self.entries]

    def messages(self) -> list[str]:
        return [message for _, message, _ in self.entries]


class InMemoryStore:
    """RecordStore keyed by a single ``id`` attribute."""

    def __init__(self) -> None:
        self.items: dict[str, dict[str, Any]] = {}

    async def get(self, key: Mapping[str, Any]) -> dict[str, Any] | None:
        item = self.items.get(key["id"])
        return dict(item) if item is not None else None

    async def put(self, item: Mapping[str, Any]) -> None:
        self.items[item["id"]] = dict(item)

    async def batch_get(self, keys: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
        return [dict(self.items[k["id"]]) for k in keys if k["id"] in self.items]

    async def batch_write(self, items: Iterable[Mapping[str, Any]]) -> None:
        for item in items:
            await self.put(item)

    async def query(self, key_name: str, key_value: Any) -> list[dict[str, Any]]:
        return [dict(i) for i in self.items.values() if i.get(key_name) == key_value]


# -----------------------------------------------------------------------------
# Pytest Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def settings() -> PipelineSettings:
    """Settings independent of the test environment."""
    return PipelineSettings(cors_allow_origin="https://example.test")


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def responses(settings: PipelineSettings, sink: RecordingSink, clock: FakeClock) -> ResponseHandler:
    """ResponseHandler wired to in-memory collaborators."""
    return ResponseHandler(settings=settings, sink=sink, clock=clock)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()
