"""Conversion between plain Python values and typed document-store values."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Dict, Mapping

_FRACTION_RE = re.compile(r"\.(\d+)")


def format_timestamp(value: datetime) -> str:
    """Render an aware or naive (assumed UTC) datetime as RFC 3339 UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp, truncating sub-microsecond digits."""
    text = value.strip().replace("Z", "+00:00")
    text = _FRACTION_RE.sub(lambda match: "." + match.group(1)[:6].ljust(6, "0"), text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def encode_value(value: Any) -> Dict[str, Any]:
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, datetime):
        return {"timestampValue": format_timestamp(value)}
    if isinstance(value, (list, tuple)):
        if not value:
            return {"arrayValue": {}}
        return {"arrayValue": {"values": [encode_value(item) for item in value]}}
    if isinstance(value, Mapping):
        return {"mapValue": {"fields": encode_fields(value)}}
    raise TypeError(f"Unsupported document value type: {type(value)!r}")


def encode_fields(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {str(key): encode_value(item) for key, item in data.items()}


def decode_value(value: Mapping[str, Any]) -> Any:
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "stringValue" in value:
        return str(value["stringValue"])
    if "timestampValue" in value:
        return parse_timestamp(str(value["timestampValue"]))
    if "arrayValue" in value:
        return [decode_value(item) for item in value["arrayValue"].get("values") or []]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields") or {})
    if "referenceValue" in value:
        return str(value["referenceValue"])
    raise ValueError(f"Unsupported document value: {dict(value)!r}")


def decode_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    return {str(key): decode_value(item) for key, item in fields.items()}


def document_id(document: Mapping[str, Any]) -> str:
    """Document id is the last path segment of the document resource name."""
    name = str(document.get("name") or "")
    return name.rsplit("/", 1)[-1]


def decode_document(document: Mapping[str, Any]) -> Dict[str, Any]:
    return decode_fields(document.get("fields") or {})
