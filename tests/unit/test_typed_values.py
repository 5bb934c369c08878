"""Tests for the typed-value codec (Firestore REST value format)."""

import math
from datetime import UTC, datetime

import pytest

from app.shared.utils.typed_values import (
    decode_document,
    decode_value,
    encode_document,
    encode_value,
)


def test_encode_scalars() -> None:
    """Each native scalar maps to its discriminator."""
    assert encode_value(None) == {"nullValue": None}
    assert encode_value(True) == {"booleanValue": True}
    assert encode_value(42) == {"integerValue": "42"}
    assert encode_value(1.5) == {"doubleValue": 1.5}
    assert encode_value("hi") == {"stringValue": "hi"}


def test_bool_is_not_encoded_as_integer() -> None:
    """bool is checked before int (bool is an int subclass)."""
    assert encode_value(False) == {"booleanValue": False}


def test_whole_float_is_encoded_as_integer() -> None:
    """Floats without a fractional part go out as integerValue."""
    assert encode_value(3.0) == {"integerValue": "3"}


def test_non_finite_doubles_are_spelled_out() -> None:
    """NaN and infinities are sent as strings so JSON can carry them."""
    assert encode_value(float("nan")) == {"doubleValue": "NaN"}
    assert encode_value(float("inf")) == {"doubleValue": "Infinity"}
    assert encode_value(float("-inf")) == {"doubleValue": "-Infinity"}
    assert math.isnan(decode_value({"doubleValue": "NaN"}))
    assert decode_value({"doubleValue": "-Infinity"}) == float("-inf")


def test_timestamp_encodes_as_utc_z() -> None:
    """Timestamps are rendered in UTC with a Z suffix."""
    value = datetime(2024, 5, 1, 12, 30, tzinfo=UTC)
    assert encode_value(value) == {"timestampValue": "2024-05-01T12:30:00Z"}


def test_nested_structures() -> None:
    """Lists and dicts become arrayValue and mapValue recursively."""
    encoded = encode_value({"tags": ["a", 1], "meta": {"ok": True}})
    assert encoded == {
        "mapValue": {
            "fields": {
                "tags": {"arrayValue": {"values": [{"stringValue": "a"}, {"integerValue": "1"}]}},
                "meta": {"mapValue": {"fields": {"ok": {"booleanValue": True}}}},
            }
        }
    }


def test_unsupported_type_raises() -> None:
    """Values without a typed representation raise TypeError."""
    with pytest.raises(TypeError):
        encode_value(object())


def test_decode_integer_string() -> None:
    """integerValue is transmitted as a string and decoded to int."""
    assert decode_value({"integerValue": "7"}) == 7


def test_decode_timestamp() -> None:
    """timestampValue with Z decodes to an aware UTC datetime."""
    decoded = decode_value({"timestampValue": "2024-05-01T12:30:00Z"})
    assert decoded == datetime(2024, 5, 1, 12, 30, tzinfo=UTC)


def test_decode_unknown_discriminator_is_passed_through() -> None:
    """Objects without a known discriminator are returned as-is."""
    assert decode_value({"geoPointValue": {"latitude": 1}}) == {"geoPointValue": {"latitude": 1}}


def test_decode_empty_array_and_map() -> None:
    """Missing values/fields decode to empty containers."""
    assert decode_value({"arrayValue": {}}) == []
    assert decode_value({"mapValue": {}}) == {}


def test_encode_document_moves_id_to_name() -> None:
    """_id becomes the resource name and is not part of fields."""
    created = datetime(2024, 1, 2, tzinfo=UTC)
    doc = encode_document(
        {"_id": "abc", "title": "Hello", "createTime": created},
        parent="projects/p/databases/(default)/documents/posts",
    )
    assert doc["name"] == "projects/p/databases/(default)/documents/posts/abc"
    assert "_id" not in doc["fields"]
    assert doc["fields"]["title"] == {"stringValue": "Hello"}
    assert doc["createTime"] == "2024-01-02T00:00:00Z"


def test_decode_document_reads_fields() -> None:
    """decode_document converts a {fields} body to native values."""
    body = {"fields": {"n": {"integerValue": "2"}, "s": {"stringValue": "x"}}}
    assert decode_document(body) == {"n": 2, "s": "x"}
    assert decode_document(None) == {}


@pytest.mark.parametrize(
    "value",
    [
        None,
        True,
        False,
        0,
        -17,
        2**53 + 1,
        -(2**63),
        2.5,
        -0.125,
        float("inf"),
        "",
        "héllo",
        b"\x00\xffbytes",
        datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=UTC),
        [],
        {},
        [[], {}, [1, [2, [3]]]],
        {"a": {"b": {"c": [True, None, "x"]}}, "empty": {"list": [], "map": {}}},
    ],
)
def test_decode_inverts_encode(value: object) -> None:
    """decode(encode(x)) == x across scalars, large integers and nested containers."""
    decoded = decode_value(encode_value(value))
    assert decoded == value
    assert type(decoded) is type(value)
