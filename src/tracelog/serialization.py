"""Canonical JSON serialization for log records.

A logging call must never crash its caller, so every function here is total:
values JSON cannot represent are coerced, and payloads that still fail to encode
(cycles, NaN, mixed-type keys) are degraded to safe strings.
"""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel

_ENCODE_ERRORS = (TypeError, ValueError, RecursionError)
_SCALARS = (str, int, bool, type(None))


def safe_repr(value: Any) -> str:
    """`repr()` that never raises."""
    try:
        return repr(value)
    except Exception:  # noqa: BLE001 - a broken __repr__ must not break logging
        return f"<unserializable {type(value).__name__}>"


def to_jsonable(value: Any) -> Any:
    """Best-effort coercion of a non-JSON value (used as `json.dumps(default=...)`).

    - Pydantic model -> `model_dump(mode="json")`
    - dataclass -> dict
    - exception -> {"name", "message"}
    - datetime/date -> ISO string
    - Path -> str
    - set/frozenset/tuple -> list
    - bytes/bytearray -> hex str

    Anything else falls back to its repr.
    """
    try:
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json")
        if is_dataclass(value) and not isinstance(value, type):
            return asdict(value)
        if isinstance(value, BaseException):
            return {"name": type(value).__name__, "message": str(value)}
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        if isinstance(value, Path):
            return str(value)
        if isinstance(value, (set, frozenset, tuple)):
            return list(value)
        if isinstance(value, (bytes, bytearray)):
            return value.hex()
    except Exception:  # noqa: BLE001 - coercion is best-effort
        pass
    return safe_repr(value)


def _dumps(payload: dict[str, Any]) -> str:
    return json.dumps(
        payload,
        default=to_jsonable,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def encode_record(payload: dict[str, Any]) -> tuple[str, bool]:
    """Serialize a record payload.

    Returns `(text, degraded)`; `degraded` is True when the payload could not be
    encoded as-is and some of its values were replaced by their repr.
    """
    try:
        return _dumps(payload), False
    except _ENCODE_ERRORS:
        pass

    # Usually only the message is pathological; keep everything else structured.
    degraded = dict(payload)
    if "Message" in degraded:
        degraded["Message"] = safe_repr(degraded["Message"])
    try:
        return _dumps(degraded), True
    except _ENCODE_ERRORS:
        pass

    flat = {str(k): v if isinstance(v, _SCALARS) else safe_repr(v) for k, v in payload.items()}
    return _dumps(flat), True


def canonical_dumps(payload: dict[str, Any]) -> str:
    """Compact, key-sorted JSON for `payload`. Never raises."""
    return encode_record(payload)[0]
