"""Log sinks (output backends).

A sink receives `(level, text)` where `text` is one serialized record, and decides
on its own whether to output it based on its minimum-severity threshold.
"""

from __future__ import annotations

import asyncio
import json
import sys
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, TextIO

import duckdb

from .models import LogLevel, is_log_level, level_enabled, utc_now
from .serialization import safe_repr

if TYPE_CHECKING:
    from .config import LoggerConfig


def _check_threshold(threshold: str) -> LogLevel:
    if not is_log_level(threshold):
        raise ValueError(f"threshold must be one of debug/info/warn/error. Got: {threshold!r}")
    return threshold  # type: ignore[return-value]


class LogSink(Protocol):
    """A synchronous sink for serialized log records."""

    def write(self, level: LogLevel, text: str) -> None:
        """Output `text` if `level` passes the sink's threshold."""

    def close(self) -> None:
        """Close any underlying resources."""


class ConsoleLogSink:
    """Writes one record per line to a text stream (stdout by default)."""

    def __init__(self, *, threshold: LogLevel = "info", stream: TextIO | None = None) -> None:
        self.threshold = _check_threshold(threshold)
        self._stream = stream
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: LoggerConfig, *, stream: TextIO | None = None) -> ConsoleLogSink:
        """Create a console sink using the threshold resolved by `config`."""
        return cls(threshold=config.threshold, stream=stream)

    def write(self, level: LogLevel, text: str) -> None:
        if not level_enabled(level, self.threshold):
            return
        # Resolve lazily so pytest's capsys (and redirect_stdout) see the output.
        stream = self._stream if self._stream is not None else sys.stdout
        with self._lock:
            stream.write(text + "\n")
            stream.flush()

    def close(self) -> None:  # noqa: D401 - keep interface consistent
        """No-op; the stream is owned by the caller."""


class InMemoryLogSink:
    """In-memory sink for tests and local debugging."""

    def __init__(self, *, threshold: LogLevel = "debug") -> None:
        """Create an empty in-memory sink."""
        self.threshold = _check_threshold(threshold)
        self._lock = threading.Lock()
        self._entries: list[tuple[LogLevel, str]] = []

    def write(self, level: LogLevel, text: str) -> None:
        """Append an entry to the in-memory list (thread-safe)."""
        if not level_enabled(level, self.threshold):
            return
        with self._lock:
            self._entries.append((level, text))

    def close(self) -> None:  # noqa: D401 - keep interface consistent
        """No-op."""

    def snapshot(self) -> Sequence[tuple[LogLevel, str]]:
        """Return a point-in-time copy of all `(level, text)` entries."""
        with self._lock:
            return list(self._entries)

    def records(self) -> list[dict[str, Any]]:
        """Return every captured record parsed back from JSON."""
        return [json.loads(text) for _, text in self.snapshot()]


@dataclass(frozen=True)
class DuckDBOptions:
    path: Path
    table: str = "log_records"


class DuckDBLogSink:
    """DuckDB sink for durable local persistence.

    Append-only: each record is stored verbatim alongside its level and the
    time it was written.
    """

    def __init__(self, *, path: str | Path, table: str = "log_records", threshold: LogLevel = "debug") -> None:
        """Create (or open) a DuckDB-backed sink at the given path."""
        self.threshold = _check_threshold(threshold)
        self._opts = DuckDBOptions(path=Path(path), table=table)
        self._lock = threading.Lock()
        self._conn = duckdb.connect(str(self._opts.path))
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        """Create the backing table if it does not exist yet."""
        create_sql = f"""
        create table if not exists {self._opts.table} (
          logged_at timestamptz not null,
          level varchar not null,
          record_json varchar not null
        )
        """
        with self._lock:
            self._conn.execute(create_sql)

    def write(self, level: LogLevel, text: str) -> None:
        """Insert a single record into DuckDB."""
        if not level_enabled(level, self.threshold):
            return
        insert_sql = f"insert into {self._opts.table} (logged_at, level, record_json) values (?, ?, ?)"
        with self._lock:
            self._conn.execute(insert_sql, [utc_now(), level, text])

    def close(self) -> None:
        """Close the underlying DuckDB connection."""
        with self._lock:
            self._conn.close()


class QueuedLogSink:
    """Hands records to a wrapped sink from a background task.

    For asyncio applications whose sink does blocking I/O (files, DuckDB): `write`
    only enqueues, and the wrapped sink runs in a worker thread. Records are
    dropped, never blocked on, when the queue is full.
    """

    def __init__(self, sink: LogSink, *, max_queue_size: int = 10000) -> None:
        """Wrap `sink`.

        Args:
            sink: Backend that performs the actual (blocking) write.
            max_queue_size: Bound for in-memory buffering; records are dropped
                when full so logging never stalls the event loop.
        """
        if max_queue_size < 1:
            raise ValueError(f"max_queue_size must be >= 1. Got: {max_queue_size}")
        self._sink = sink
        self._max_queue_size = max_queue_size
        self._queue: asyncio.Queue[tuple[LogLevel, str] | None] | None = None
        self._worker: asyncio.Task[None] | None = None
        self._closed = False

        self._dropped = 0
        self._write_failures = 0
        self._first_failure_at: datetime | None = None
        self._last_failure_at: datetime | None = None
        self._last_error: str | None = None

    def _note_failure(self, exc: BaseException | None = None) -> None:
        now = utc_now()
        self._write_failures += 1
        self._first_failure_at = self._first_failure_at or now
        self._last_failure_at = now
        if exc is not None:
            self._last_error = safe_repr(exc)

    def _ensure_started(self) -> asyncio.Queue[tuple[LogLevel, str] | None]:
        """Start the background writer task if it hasn't been started yet."""
        if self._queue is None:
            self._queue = asyncio.Queue(maxsize=self._max_queue_size)
        if self._worker is None:
            self._worker = asyncio.create_task(self._run_worker(self._queue), name="tracelog-writer")
        return self._queue

    def write(self, level: LogLevel, text: str) -> None:
        """Enqueue a record (non-blocking)."""
        if self._closed:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # No event loop: nothing to offload onto, deliver inline.
            try:
                self._sink.write(level, text)
            except Exception as exc:  # noqa: BLE001 - logging must not crash the caller
                self._note_failure(exc)
            return

        queue = self._ensure_started()
        try:
            queue.put_nowait((level, text))
        except asyncio.QueueFull:
            self._dropped += 1

    def close(self) -> None:
        """Close without draining; prefer `aclose()` inside an event loop."""
        self._closed = True
        if self._worker is not None:
            self._worker.cancel()
        self._sink.close()

    async def aclose(self) -> None:
        """Drain pending records and close the wrapped sink.

        Safe to call multiple times.
        """
        if self._closed:
            return
        self._closed = True
        if self._worker is not None and self._queue is not None:
            await self._queue.put(None)
            await self._worker
        await asyncio.to_thread(self._sink.close)

    async def _run_worker(self, queue: asyncio.Queue[tuple[LogLevel, str] | None]) -> None:
        """Background loop that drains the queue and writes to the sink."""
        while True:
            item = await queue.get()
            try:
                if item is None:
                    return
                await asyncio.to_thread(self._sink.write, *item)
            except Exception as exc:  # noqa: BLE001 - logging must not crash the application
                self._note_failure(exc)
            finally:
                queue.task_done()

    def degraded_status(self) -> dict[str, Any]:
        """Return a minimal degraded-status snapshot."""
        return {
            "dropped": self._dropped,
            "write_failures": self._write_failures,
            "first_failure_at": self._first_failure_at,
            "last_failure_at": self._last_failure_at,
            "last_error": self._last_error,
        }
