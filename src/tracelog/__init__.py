"""Structured logging with per-instance correlation and timing.

This package provides:
- `create()`/`LogRecorder`: one JSON record per log call, tagged with a `TraceID`,
  free-form metadata, and the milliseconds since the previous call.
- Sinks that decide, per record, whether to output it (console, in-memory, DuckDB,
  and a queued wrapper for asyncio applications).
- Environment-driven configuration for the default console threshold.
"""

from .config import LoggerConfig, load_config
from .models import LEVEL_ORDER, LogLevel, LogRecord, level_enabled
from .recorder import TRACE_ID_KEY, Logger, LogRecorder, create, new_trace_id
from .serialization import canonical_dumps
from .sinks import ConsoleLogSink, DuckDBLogSink, InMemoryLogSink, LogSink, QueuedLogSink

__all__ = [
    "LEVEL_ORDER",
    "TRACE_ID_KEY",
    "ConsoleLogSink",
    "DuckDBLogSink",
    "InMemoryLogSink",
    "LogLevel",
    "LogRecord",
    "LogRecorder",
    "LogSink",
    "Logger",
    "LoggerConfig",
    "QueuedLogSink",
    "canonical_dumps",
    "create",
    "level_enabled",
    "load_config",
    "new_trace_id",
]
