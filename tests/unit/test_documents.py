from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from wt_cli.core.documents import (
    decode_document,
    decode_value,
    document_id,
    encode_fields,
    encode_value,
    format_timestamp,
    parse_timestamp,
)


def test_encode_scalars() -> None:
    assert encode_value(None) == {"nullValue": None}
    assert encode_value(True) == {"booleanValue": True}
    assert encode_value(3) == {"integerValue": "3"}
    assert encode_value(2.5) == {"doubleValue": 2.5}
    assert encode_value("Plank") == {"stringValue": "Plank"}


def test_encode_nested_day_payload() -> None:
    fields = encode_fields({"name": "Push", "workouts": [{"name": "Bench", "type": "sets", "count": 3}]})

    assert fields["name"] == {"stringValue": "Push"}
    exercise = fields["workouts"]["arrayValue"]["values"][0]["mapValue"]["fields"]
    assert exercise["count"] == {"integerValue": "3"}
    assert encode_value([]) == {"arrayValue": {}}


def test_encode_rejects_unknown_types() -> None:
    with pytest.raises(TypeError):
        encode_value(object())


def test_timestamps_are_rendered_in_utc() -> None:
    moment = datetime(2026, 3, 2, 19, 0, 1, 500000, tzinfo=timezone(timedelta(hours=1)))
    assert format_timestamp(moment) == "2026-03-02T18:00:01.500000Z"
    assert format_timestamp(datetime(2026, 3, 2)) == "2026-03-02T00:00:00.000000Z"


def test_parse_timestamp_truncates_nanoseconds() -> None:
    parsed = parse_timestamp("2026-03-02T18:00:01.123456789Z")
    assert parsed == datetime(2026, 3, 2, 18, 0, 1, 123456, tzinfo=timezone.utc)
    assert parse_timestamp("2026-03-02T18:00:01Z").microsecond == 0


def test_decode_document_values() -> None:
    document = {
        "name": "projects/demo/databases/(default)/documents/workoutLogs/abc123",
        "fields": {
            "dayId": {"stringValue": "push"},
            "totalDuration": {"doubleValue": 1200.5},
            "sets": {"integerValue": "4"},
            "timestamp": {"timestampValue": "2026-03-02T18:00:00Z"},
            "exercises": {
                "arrayValue": {
                    "values": [{"mapValue": {"fields": {"name": {"stringValue": "Bench"}}}}]
                }
            },
            "empty": {"arrayValue": {}},
            "note": {"nullValue": None},
        },
    }

    assert document_id(document) == "abc123"
    decoded = decode_document(document)
    assert decoded["dayId"] == "push"
    assert decoded["totalDuration"] == 1200.5
    assert decoded["sets"] == 4
    assert decoded["timestamp"] == datetime(2026, 3, 2, 18, 0, tzinfo=timezone.utc)
    assert decoded["exercises"] == [{"name": "Bench"}]
    assert decoded["empty"] == []
    assert decoded["note"] is None


def test_decode_rejects_unknown_value() -> None:
    with pytest.raises(ValueError):
        decode_value({"geoPointValue": {"latitude": 1}})
