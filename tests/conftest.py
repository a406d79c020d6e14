"""Shared test fixtures for the notehistory test suite."""

from __future__ import annotations

from typing import Any

import pytest

from notehistory.config import NoteHistoryConfig
from notehistory.document import JsonDocument
from notehistory.history import MemoryKeyValueStore, VersionService

START_MS = 1_700_000_000_000


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, now: int = START_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


class RecordingMetricsHook:
    """A metrics backend that records all calls for assertion."""

    def __init__(self) -> None:
        self.increments: list[dict[str, Any]] = []
        self.timings: list[dict[str, Any]] = []
        self.gauges: list[dict[str, Any]] = []

    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        self.increments.append({"name": name, "value": value, "tags": tags})

    def timing(self, name: str, ms: float, tags: dict[str, str] | None = None) -> None:
        self.timings.append({"name": name, "ms": ms, "tags": tags})

    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        self.gauges.append({"name": name, "value": value, "tags": tags})

    def names(self) -> list[str]:
        return [entry["name"] for entry in self.increments]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def metrics() -> RecordingMetricsHook:
    return RecordingMetricsHook()


@pytest.fixture
def config(metrics: RecordingMetricsHook) -> NoteHistoryConfig:
    """Default configuration wired to the recording metrics hook."""
    return NoteHistoryConfig(metrics=metrics)


@pytest.fixture
def storage() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def service(
    storage: MemoryKeyValueStore,
    config: NoteHistoryConfig,
    clock: FakeClock,
) -> VersionService:
    return VersionService(storage=storage, config=config, clock=clock)


@pytest.fixture
def document() -> JsonDocument:
    """A small live note: a heading, a paragraph and a bullet list."""
    return JsonDocument.from_markdown(
        "# Groceries\n\nBuy these **today**\n\n- milk\n- eggs\n",
        title="Groceries",
    )
