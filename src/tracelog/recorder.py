"""Per-unit-of-work structured logger.

A `LogRecorder` is created once per request/task. It carries a `TraceID` plus any
caller metadata, and every call produces one flat JSON record that includes the
milliseconds elapsed since the previous call on the same instance.

Instances are not thread-safe; give each concurrent task its own recorder.
"""

from __future__ import annotations

import functools
import time
import uuid
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any, Protocol

from .config import load_config
from .models import LogLevel, LogRecord, format_timestamp, is_log_level, utc_now
from .serialization import encode_record, safe_repr
from .sinks import ConsoleLogSink, LogSink

TRACE_ID_KEY = "TraceID"


def new_trace_id() -> str:
    """Return a fresh correlation token."""
    return str(uuid.uuid4())


def monotonic_ms() -> int:
    """Monotonic clock in whole milliseconds."""
    return time.monotonic_ns() // 1_000_000


class Logger(Protocol):
    """The capability set every logger in this package provides."""

    def debug(self, message: Any) -> None: ...
    def info(self, message: Any) -> None: ...
    def warn(self, message: Any) -> None: ...
    def error(self, message: Any) -> None: ...
    def with_metadata(self, metadata: Mapping[str, str], merge: bool = False) -> Logger: ...
    def get(self, key: str) -> str: ...
    def set(self, key: str, value: str) -> Logger: ...
    def flush(self) -> None: ...


class LogRecorder:
    """Builds one JSON record per call and hands it to a sink."""

    def __init__(
        self,
        name: str,
        metadata: Mapping[str, str] | None = None,
        *,
        sink: LogSink,
        trace_id_factory: Callable[[], str] = new_trace_id,
        clock: Callable[[], float] = monotonic_ms,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        """Create a recorder bound to `name`.

        Args:
            name: Logical logger name, included verbatim in every record.
            metadata: Initial metadata. A `TraceID` given here is kept as-is;
                otherwise one is generated.
            sink: Receives `(level, text)` for every record.
            trace_id_factory: Produces the correlation token.
            clock: Monotonic millisecond clock used for `Duration`.
            now: Wall clock used for `Timestamp`.
        """
        if not isinstance(name, str) or not name:
            raise ValueError(f"name must be a non-empty string. Got: {name!r}")

        self.name = name
        self._sink = sink
        self._clock = clock
        self._now = now

        initial = dict(metadata or {})
        if TRACE_ID_KEY not in initial:
            initial = {TRACE_ID_KEY: trace_id_factory(), **initial}
        self.metadata: dict[str, str] = initial

        self.last_emit_ms: float = clock()

        # Degradation tracking: the caller never sees these failures.
        self._sink_failures = 0
        self._serialization_fallbacks = 0
        self._first_failure_at: datetime | None = None
        self._last_failure_at: datetime | None = None
        self._last_error: str | None = None

    def debug(self, message: Any) -> None:
        self._emit("debug", message)

    def info(self, message: Any) -> None:
        self._emit("info", message)

    def warn(self, message: Any) -> None:
        self._emit("warn", message)

    def error(self, message: Any) -> None:
        self._emit("error", message)

    def log(self, level: str, message: Any) -> None:
        """Emit at `level`; unknown levels are logged as `info`."""
        self._emit(level if is_log_level(level) else "info", message)  # type: ignore[arg-type]

    def with_metadata(self, metadata: Mapping[str, str], merge: bool = False) -> LogRecorder:
        """Merge into (`merge=True`) or replace (default) the current metadata.

        Replacing drops every key not present in `metadata`, `TraceID` included.
        """
        if merge:
            self.metadata = {**self.metadata, **metadata}
        else:
            self.metadata = dict(metadata)
        return self

    def get(self, key: str) -> str:
        """Return the metadata value for `key`, or "" when unset."""
        return self.metadata.get(key) or ""

    def set(self, key: str, value: str) -> LogRecorder:
        self.metadata[key] = value
        return self

    def flush(self) -> None:
        """No-op: records are handed to the sink as they are emitted."""

    def degraded_status(self) -> dict[str, Any]:
        """Return a minimal degraded-status snapshot."""
        return {
            "sink_failures": self._sink_failures,
            "serialization_fallbacks": self._serialization_fallbacks,
            "first_failure_at": self._first_failure_at,
            "last_failure_at": self._last_failure_at,
            "last_error": self._last_error,
        }

    def _note_failure(self, detail: str) -> None:
        now = utc_now()
        self._first_failure_at = self._first_failure_at or now
        self._last_failure_at = now
        self._last_error = detail

    def _emit(self, level: LogLevel, message: Any) -> None:
        now_ms = self._clock()
        ts = self._now()
        # Injected clocks may return floats; the wire format carries whole milliseconds.
        duration = max(0, int(now_ms - self.last_emit_ms))
        self.last_emit_ms = max(self.last_emit_ms, now_ms)

        record = LogRecord(
            Timestamp=format_timestamp(ts),
            Level=level,
            Logger=self.name,
            Duration=duration,
            Message=message,
        )
        text, degraded = encode_record(record.to_payload(self.metadata))
        if degraded:
            self._serialization_fallbacks += 1
            self._note_failure(f"unserializable record payload (Message type {type(message).__name__})")

        try:
            self._sink.write(level, text)
        except Exception as exc:  # noqa: BLE001 - logging must not crash the caller
            self._sink_failures += 1
            self._note_failure(safe_repr(exc))


@functools.lru_cache(maxsize=None)
def default_sink() -> LogSink:
    """Console sink shared by loggers created without an explicit sink.

    Resolved once per process; an unrecognised `LOGGER_LEVEL` falls back to the
    `APP_ENV` default instead of failing logger construction.
    """
    return ConsoleLogSink.from_config(load_config(strict=False))


def create(name: str, metadata: Mapping[str, str] | None = None, *, sink: LogSink | None = None, **kwargs: Any) -> Logger:
    """Create a logger instance.

    Without an explicit `sink`, records go to `default_sink()`. Extra keyword
    arguments are passed to `LogRecorder`.
    """
    if sink is None:
        sink = default_sink()
    return LogRecorder(name, metadata, sink=sink, **kwargs)
