from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest


@pytest.fixture(autouse=True)
def _no_threads_in_unit_tests(monkeypatch: pytest.MonkeyPatch):
    """Run `asyncio.to_thread` inline for unit tests.

    `QueuedLogSink` hands writes to `asyncio.to_thread`. In unit tests, this can
    create threadpool workers that keep the Python process alive longer than
    expected under some runtimes.
    """

    async def _to_thread(func, /, *args, **kwargs):  # noqa: ANN001, D401
        return func(*args, **kwargs)

    monkeypatch.setattr("tracelog.sinks.asyncio.to_thread", _to_thread)
    yield


class FakeClock:
    """Manually advanced millisecond clock paired with a matching wall clock."""

    def __init__(self, start_ms: int = 1_000) -> None:
        self.ms = start_ms
        self._epoch = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        self._start_ms = start_ms

    def advance(self, ms: int) -> None:
        self.ms += ms

    def __call__(self) -> int:
        return self.ms

    def now(self) -> datetime:
        return self._epoch + timedelta(milliseconds=self.ms - self._start_ms)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _fresh_default_sink():
    """Let each test resolve the default console sink from its own environment."""
    from tracelog.recorder import default_sink

    default_sink.cache_clear()
    yield
    default_sink.cache_clear()
