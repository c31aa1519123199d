"""Shared pytest fixtures and test helpers for servicepipe tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from typing import Any

import pytest
from click.testing import CliRunner

from servicepipe.services.telemetry import disable_telemetry


class RecordingProxy:
    """In-memory data proxy that records every call it receives.

    Calls ``done`` synchronously with a canned result per method.
    """

    def __init__(self, **results: Any) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self._results = results

    def _record(self, method: str, args: tuple[Any, ...], done: Any) -> None:
        self.calls.append((method, args))
        done(self._results.get(method))

    def get_all(self, done: Any) -> None:
        self._record("get_all", (), done)

    def get_by_id(self, entity_id: Any, done: Any) -> None:
        self._record("get_by_id", (entity_id,), done)

    def insert(self, data: Any, done: Any) -> None:
        self._record("insert", (data,), done)

    def update(self, data: Any, done: Any) -> None:
        self._record("update", (data,), done)

    def delete(self, entity_id: Any, done: Any) -> None:
        self._record("delete", (entity_id,), done)


@pytest.fixture
def proxy() -> RecordingProxy:
    """A recording data proxy returning ``None`` from every method."""
    return RecordingProxy()


@pytest.fixture
def make_proxy() -> type[RecordingProxy]:
    """Factory for recording proxies with canned results, e.g. ``make_proxy(get_all=[1])``."""
    return RecordingProxy


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _reset_telemetry() -> Generator[None]:
    """Telemetry is process-global; keep it off between tests."""
    yield
    disable_telemetry()


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root and servicepipe logger state after each test.

    The CLI reconfigures logging on every invocation.
    """
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    pipe = logging.getLogger("servicepipe")
    pipe_level = pipe.level
    spans = logging.getLogger("servicepipe.telemetry")
    spans_level = spans.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    pipe.setLevel(pipe_level)
    spans.setLevel(spans_level)
