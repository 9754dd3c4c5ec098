from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from tracelog.models import LogRecord, format_timestamp
from tracelog.serialization import canonical_dumps, encode_record, safe_repr, to_jsonable


@dataclass
class _Point:
    x: int
    y: int


def test_canonical_dumps_is_compact_and_sorted() -> None:
    text = canonical_dumps({"b": 1, "a": "é"})

    assert text == '{"a":"é","b":1}'


def test_to_jsonable_coercions() -> None:
    assert to_jsonable(_Point(1, 2)) == {"x": 1, "y": 2}
    assert to_jsonable(ValueError("bad")) == {"name": "ValueError", "message": "bad"}
    assert to_jsonable(datetime(2024, 1, 1, tzinfo=timezone.utc)) == "2024-01-01T00:00:00+00:00"
    assert to_jsonable(Path("/tmp/x")) == "/tmp/x"
    assert to_jsonable(b"\x01\xff") == "01ff"
    assert sorted(to_jsonable({3, 1, 2})) == [1, 2, 3]
    assert to_jsonable(object).startswith("<class")


def test_encode_record_marks_cycles_as_degraded() -> None:
    cyclic: list[object] = [1]
    cyclic.append(cyclic)

    text, degraded = encode_record({"Level": "error", "Message": cyclic})

    assert degraded is True
    assert json.loads(text) == {"Level": "error", "Message": "[1, [...]]"}


def test_encode_record_rejects_nan_without_raising() -> None:
    text, degraded = encode_record({"Message": {"ratio": float("nan")}})

    assert degraded is True
    assert json.loads(text) == {"Message": "{'ratio': nan}"}


def test_encode_record_degrades_unencodable_metadata_values() -> None:
    text, degraded = encode_record({"Message": "ok", "Score": float("inf")})

    assert degraded is True
    assert json.loads(text) == {"Message": "ok", "Score": "inf"}


def test_safe_repr_never_raises() -> None:
    class _Broken:
        def __repr__(self) -> str:
            raise ValueError("nope")

    assert safe_repr(_Broken()) == "<unserializable _Broken>"


def test_log_record_payload_overlays_metadata() -> None:
    record = LogRecord(Timestamp="t", Level="info", Logger="svc", Duration=5, Message={"k": "v"})

    payload = record.to_payload({"Duration": "shadowed", "TraceID": "abc"})

    assert payload == {
        "Timestamp": "t",
        "Level": "info",
        "Logger": "svc",
        "Duration": "shadowed",
        "Message": {"k": "v"},
        "TraceID": "abc",
    }


def test_format_timestamp_normalizes_to_utc() -> None:
    naive = datetime(2024, 5, 6, 7, 8, 9, 123456)

    assert format_timestamp(naive) == "2024-05-06T07:08:09.123Z"
