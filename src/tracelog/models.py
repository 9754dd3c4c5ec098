"""Log record models.

Records are designed to be:
- Flat, one JSON object per log call.
- Easy to link across a unit of work via the `TraceID` metadata key.
- Self-timing: `Duration` is the gap since the previous record from the same logger.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict

LogLevel = Literal["debug", "info", "warn", "error"]

LOG_LEVELS: tuple[LogLevel, ...] = get_args(LogLevel)

# Threshold ordering: debug < info < warn < error.
LEVEL_ORDER: dict[LogLevel, int] = {level: rank for rank, level in enumerate(LOG_LEVELS)}


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(tz=timezone.utc)


def format_timestamp(ts: datetime) -> str:
    """Render `ts` as ISO-8601 UTC with millisecond precision and a `Z` suffix."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    ts = ts.astimezone(timezone.utc)
    return ts.replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"


def is_log_level(value: Any) -> bool:
    return isinstance(value, str) and value in LEVEL_ORDER


def level_enabled(level: LogLevel, threshold: LogLevel) -> bool:
    """Return True when `level` is at or above `threshold`."""
    return LEVEL_ORDER[level] >= LEVEL_ORDER[threshold]


class LogRecord(BaseModel):
    """A single emitted log record, before metadata is overlaid."""

    model_config = ConfigDict(frozen=True)

    Timestamp: str
    Level: LogLevel
    Logger: str
    # Milliseconds since the previous record (or since the logger was created).
    Duration: int
    # Kept as-is; structured values are serialized structurally, not re-stringified.
    Message: Any = None

    def to_payload(self, metadata: Mapping[str, str]) -> dict[str, Any]:
        """Return the flat wire payload with `metadata` overlaid last.

        Metadata keys that collide with a reserved field replace it.
        """
        payload: dict[str, Any] = {
            "Timestamp": self.Timestamp,
            "Level": self.Level,
            "Logger": self.Logger,
            "Duration": self.Duration,
            "Message": self.Message,
        }
        payload.update(metadata)
        return payload
