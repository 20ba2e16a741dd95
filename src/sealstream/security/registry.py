"""Closed table of value kinds and their stream codecs.

Maps every ``ValueKind`` to the writer/reader methods that frame it, and
resolves Python values, Python types and kind names to a ``ValueKind``.
The table is built once at import time and never modified.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Callable, Mapping

from sealstream.core.exceptions import UnsupportedTypeError
from sealstream.core.models import ValueKind, normalize_name


INT32_RANGE = (-(2 ** 31), 2 ** 31 - 1)
INT64_RANGE = (-(2 ** 63), 2 ** 63 - 1)


@dataclass(frozen=True)
class ValueCodec:
    kind: ValueKind
    encode: Callable[[Any, Any], None]  # (writer, value)
    decode: Callable[[Any], Any]  # (reader) -> value


_CODEC_LIST = (
    ValueCodec(ValueKind.STRING, lambda w, v: w.write_string(v), lambda r: r.read_string()),
    ValueCodec(ValueKind.BOOL, lambda w, v: w.write_bool(v), lambda r: r.read_bool()),
    ValueCodec(ValueKind.CHAR, lambda w, v: w.write_char(v), lambda r: r.read_char()),
    ValueCodec(ValueKind.INT8, lambda w, v: w.write_int8(v), lambda r: r.read_int8()),
    ValueCodec(ValueKind.UINT8, lambda w, v: w.write_uint8(v), lambda r: r.read_uint8()),
    ValueCodec(ValueKind.INT16, lambda w, v: w.write_int16(v), lambda r: r.read_int16()),
    ValueCodec(ValueKind.UINT16, lambda w, v: w.write_uint16(v), lambda r: r.read_uint16()),
    ValueCodec(ValueKind.INT32, lambda w, v: w.write_int32(v), lambda r: r.read_int32()),
    ValueCodec(ValueKind.UINT32, lambda w, v: w.write_uint32(v), lambda r: r.read_uint32()),
    ValueCodec(ValueKind.INT64, lambda w, v: w.write_int64(v), lambda r: r.read_int64()),
    ValueCodec(ValueKind.UINT64, lambda w, v: w.write_uint64(v), lambda r: r.read_uint64()),
    ValueCodec(ValueKind.FLOAT32, lambda w, v: w.write_float32(v), lambda r: r.read_float32()),
    ValueCodec(ValueKind.FLOAT64, lambda w, v: w.write_float64(v), lambda r: r.read_float64()),
    ValueCodec(ValueKind.DECIMAL, lambda w, v: w.write_decimal(v), lambda r: r.read_decimal()),
    ValueCodec(ValueKind.TIMESTAMP, lambda w, v: w.write_timestamp(v), lambda r: r.read_timestamp()),
    ValueCodec(ValueKind.BYTE_ARRAY, lambda w, v: w.write_byte_array(v), lambda r: r.read_byte_array()),
    ValueCodec(ValueKind.STRING_ARRAY, lambda w, v: w.write_string_array(v), lambda r: r.read_string_array()),
)

CODECS: Mapping[ValueKind, ValueCodec] = MappingProxyType({codec.kind: codec for codec in _CODEC_LIST})

# Python types accepted where a kind is expected
TYPE_KINDS: Mapping[type, ValueKind] = MappingProxyType({
    str: ValueKind.STRING,
    bool: ValueKind.BOOL,
    int: ValueKind.INT32,
    float: ValueKind.FLOAT64,
    Decimal: ValueKind.DECIMAL,
    datetime: ValueKind.TIMESTAMP,
    bytes: ValueKind.BYTE_ARRAY,
    bytearray: ValueKind.BYTE_ARRAY,
    list: ValueKind.STRING_ARRAY,
    tuple: ValueKind.STRING_ARRAY,
})


def get_codec(kind: ValueKind) -> ValueCodec:
    codec = CODECS.get(kind) if isinstance(kind, ValueKind) else None
    if codec is None:
        raise UnsupportedTypeError(f"unsupported value kind: {kind!r}")
    return codec


def resolve_kind(kind: ValueKind | str | type) -> ValueKind:
    """Turn a ``ValueKind``, a kind name such as ``"int32"`` or a Python type into a kind."""
    if isinstance(kind, ValueKind):
        return kind
    if isinstance(kind, str):
        try:
            return ValueKind(normalize_name(kind))
        except ValueError:
            raise UnsupportedTypeError(f"unsupported value kind: {kind!r}") from None
    if isinstance(kind, type) and kind in TYPE_KINDS:
        return TYPE_KINDS[kind]
    name = getattr(kind, "__name__", repr(kind))
    raise UnsupportedTypeError(f"data type '{name}' is not supported")


def infer_kind(value: Any) -> ValueKind:
    """Pick the kind a runtime value is framed as when the caller gives none."""
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, int):
        if INT32_RANGE[0] <= value <= INT32_RANGE[1]:
            return ValueKind.INT32
        if INT64_RANGE[0] <= value <= INT64_RANGE[1]:
            return ValueKind.INT64
        return ValueKind.UINT64
    if isinstance(value, float):
        return ValueKind.FLOAT64
    if isinstance(value, Decimal):
        return ValueKind.DECIMAL
    if isinstance(value, datetime):
        return ValueKind.TIMESTAMP
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ValueKind.BYTE_ARRAY
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
        return ValueKind.STRING_ARRAY
    raise UnsupportedTypeError(f"cannot encrypt value: data type '{type(value).__name__}' is not supported")


def is_supported(kind: Any) -> bool:
    try:
        resolve_kind(kind)
    except UnsupportedTypeError:
        return False
    return True
