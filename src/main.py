"""Demo entrypoint emitting a few records from two units of work.

This module is a small manual harness, not part of the library:

- Resolves the console threshold from the environment (`LOGGER_LEVEL` / `APP_ENV`).
- Runs two concurrent "requests", each with its own logger and `TraceID`.
- Optionally also persists every record to DuckDB when `TRACELOG_DB_PATH` is set.
"""

from __future__ import annotations

import asyncio
import os

from tracelog import ConsoleLogSink, DuckDBLogSink, QueuedLogSink, create, load_config
from tracelog.models import LogLevel
from tracelog.sinks import LogSink


class _FanOutSink:
    """Delivers every record to each wrapped sink."""

    def __init__(self, *sinks: LogSink) -> None:
        self._sinks = sinks

    def write(self, level: LogLevel, text: str) -> None:
        for sink in self._sinks:
            sink.write(level, text)

    def close(self) -> None:
        for sink in self._sinks:
            sink.close()


async def _handle_request(request_id: str, sink: LogSink) -> None:
    """Simulate one unit of work with its own logger."""
    log = create("demo.request", {"RequestID": request_id}, sink=sink)
    log.debug({"step": "received", "path": "/orders"})
    await asyncio.sleep(0.05)

    log.set("UserID", f"user-{request_id}")
    log.info("authenticated")
    await asyncio.sleep(0.02)

    try:
        raise TimeoutError("upstream took too long")
    except TimeoutError as exc:
        log.warn(exc)

    cyclic: dict[str, object] = {"request_id": request_id}
    cyclic["self"] = cyclic
    log.error(cyclic)
    log.flush()


async def run_demo() -> None:
    """Run two overlapping requests against the configured sinks."""
    cfg = load_config()
    console = ConsoleLogSink.from_config(cfg)

    db_path = os.getenv("TRACELOG_DB_PATH")
    queued: QueuedLogSink | None = None
    sink: LogSink = console
    if db_path:
        queued = QueuedLogSink(DuckDBLogSink(path=db_path))
        sink = _FanOutSink(console, queued)

    try:
        await asyncio.gather(_handle_request("r1", sink), _handle_request("r2", sink))
    finally:
        if queued is not None:
            await queued.aclose()
            print(f"[tracelog] duckdb sink status: {queued.degraded_status()}")


def main() -> None:
    """CLI entrypoint for running the demo with `python src/main.py`."""
    asyncio.run(run_demo())


if __name__ == "__main__":
    main()
