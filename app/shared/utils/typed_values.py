"""Encode/decode Python values to/from the Firestore typed-value format.

The same format is the public wire format of the document API, so the HTTP
layer and the Firestore storage engine share this module.
"""

import base64
import math
from datetime import datetime
from typing import Any

from app.shared.utils.datetime import ensure_utc

ID_FIELD = "_id"


def _format_timestamp(v: datetime) -> str:
    return ensure_utc(v).isoformat().replace("+00:00", "Z")


def encode_value(v: Any) -> dict:
    """Wrap a native value in its typed-value discriminator.

    Floats without a fractional part are sent as integers. NaN and infinity
    stay doubles, spelled "NaN", "Infinity" and "-Infinity" since JSON has no
    literal for them.

    Raises:
        TypeError: If the value has no typed-value representation.
    """
    if v is None:
        return {"nullValue": None}
    if isinstance(v, bool):
        return {"booleanValue": v}
    if isinstance(v, int):
        return {"integerValue": str(v)}
    if isinstance(v, float):
        if math.isnan(v):
            return {"doubleValue": "NaN"}
        if math.isinf(v):
            return {"doubleValue": "Infinity" if v > 0 else "-Infinity"}
        if v.is_integer():
            return {"integerValue": str(int(v))}
        return {"doubleValue": v}
    if isinstance(v, datetime):
        return {"timestampValue": _format_timestamp(v)}
    if isinstance(v, str):
        return {"stringValue": v}
    if isinstance(v, bytes):
        return {"bytesValue": base64.standard_b64encode(v).decode("ascii")}
    if isinstance(v, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(x) for x in v]}}
    if isinstance(v, dict):
        return {"mapValue": {"fields": {k: encode_value(x) for k, x in v.items()}}}
    raise TypeError(f"Unsupported Firestore value type: {type(v)}")


def decode_value(obj: Any) -> Any:
    """Unwrap a typed value. Unknown discriminators are returned unchanged."""
    if not isinstance(obj, dict):
        return obj
    if "nullValue" in obj:
        return None
    if "booleanValue" in obj:
        return obj["booleanValue"]
    if "integerValue" in obj:
        return int(obj["integerValue"])
    if "doubleValue" in obj:
        return float(obj["doubleValue"])
    if "timestampValue" in obj:
        return datetime.fromisoformat(obj["timestampValue"].replace("Z", "+00:00"))
    if "stringValue" in obj:
        return obj["stringValue"]
    if "bytesValue" in obj:
        return base64.standard_b64decode(obj["bytesValue"])
    if "arrayValue" in obj:
        vals = (obj.get("arrayValue") or {}).get("values") or []
        return [decode_value(x) for x in vals]
    if "mapValue" in obj:
        fields = (obj.get("mapValue") or {}).get("fields") or {}
        return {k: decode_value(x) for k, x in fields.items()}
    return obj


def encode_fields(data: dict[str, Any]) -> dict[str, dict]:
    """Encode every entry of a record except the storage identifier."""
    return {k: encode_value(v) for k, v in data.items() if k != ID_FIELD}


def decode_fields(fields: dict | None) -> dict[str, Any]:
    """Decode a ``fields`` mapping into a native dict."""
    if not fields:
        return {}
    return {k: decode_value(v) for k, v in fields.items()}


def encode_document(record: dict[str, Any], parent: str | None = None) -> dict:
    """Convert a storage record to a REST Document.

    ``_id`` becomes ``name`` (prefixed with ``parent`` when given) and is not
    part of ``fields``. Server timestamps are mirrored at the top level.
    """
    doc: dict[str, Any] = {}
    doc_id = record.get(ID_FIELD)
    if doc_id is not None:
        doc["name"] = f"{parent}/{doc_id}" if parent else doc_id
    doc["fields"] = encode_fields(record)
    for key in ("createTime", "updateTime"):
        value = record.get(key)
        if isinstance(value, datetime):
            doc[key] = _format_timestamp(value)
    return doc


def decode_document(document: dict | None) -> dict[str, Any]:
    """Convert a REST Document (or request body) ``{"fields": ...}`` to a native dict."""
    if not document:
        return {}
    return decode_fields(document.get("fields"))
