"""Plaintext framing primitives for encrypted value streams.

Every value written to a stream is framed before it reaches the cipher.
All multi-byte integers are little-endian:

- bool, int8, uint8: 1 byte
- int16/uint16, int32/uint32, int64/uint64: 2, 4, 8 bytes
- float32/float64: IEEE-754 single/double
- decimal: 16 bytes (lo, mid, hi, flags)
- char: UTF-8 bytes of one character (1-4 bytes)
- timestamp: int64 count of 100ns ticks since 0001-01-01T00:00:00
- string: 7-bit varint byte count + UTF-8 bytes
- byte array: int32 length + raw bytes
- string array: int32 count + that many strings

The stream classes in :mod:`sealstream.security.streams` do the I/O;
this module only turns values into bytes and back.
"""
from __future__ import annotations

import struct
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict

from sealstream.core.exceptions import FramingError
from sealstream.core.models import ValueKind


FIXED_WIDTH: Dict[ValueKind, struct.Struct] = {
    ValueKind.BOOL: struct.Struct("<?"),
    ValueKind.INT8: struct.Struct("<b"),
    ValueKind.UINT8: struct.Struct("<B"),
    ValueKind.INT16: struct.Struct("<h"),
    ValueKind.UINT16: struct.Struct("<H"),
    ValueKind.INT32: struct.Struct("<i"),
    ValueKind.UINT32: struct.Struct("<I"),
    ValueKind.INT64: struct.Struct("<q"),
    ValueKind.UINT64: struct.Struct("<Q"),
    ValueKind.FLOAT32: struct.Struct("<f"),
    ValueKind.FLOAT64: struct.Struct("<d"),
}

LENGTH_PREFIX = FIXED_WIDTH[ValueKind.INT32]

_FLOAT_KINDS = (ValueKind.FLOAT32, ValueKind.FLOAT64)

DECIMAL_SIZE = 16
DECIMAL_MAX_SCALE = 28
_DECIMAL_SIGN = 0x80000000
_DECIMAL_SCALE_MASK = 0x00FF0000
_DECIMAL_PARTS = struct.Struct("<IIII")

TICKS_PER_SECOND = 10_000_000
TICKS_EPOCH = datetime(1, 1, 1)
MAX_TICKS = 3155378975999999999  # 9999-12-31T23:59:59.9999999

VARINT_MAX_BYTES = 5


# ----------------------------------------------------------------------
# Fixed-width values
# ----------------------------------------------------------------------

def _check_fixed_type(kind: ValueKind, value) -> None:
    if kind is ValueKind.BOOL:
        # True/False, or the integers 0 and 1
        if isinstance(value, bool) or (isinstance(value, int) and value in (0, 1)):
            return
        raise ValueError(f"bool value must be True, False, 0 or 1, got {value!r}")
    if kind in _FLOAT_KINDS:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return
        raise ValueError(f"{kind.value} expects a float, got {type(value).__name__}")
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{kind.value} expects an integer, got {type(value).__name__}")


def pack_fixed(kind: ValueKind, value) -> bytes:
    """
    Pack a fixed-width value. Raises ``ValueError`` when the value has the
    wrong type for ``kind`` or does not fit its width.
    """
    fmt = FIXED_WIDTH[kind]
    _check_fixed_type(kind, value)
    try:
        return fmt.pack(value)
    except (struct.error, OverflowError) as e:
        raise ValueError(f"{kind.value} value out of range: {value!r}") from e


def unpack_fixed(kind: ValueKind, data: bytes):
    (value,) = FIXED_WIDTH[kind].unpack(data)
    return value


def pack_length(count: int) -> bytes:
    try:
        return LENGTH_PREFIX.pack(count)
    except struct.error as e:
        raise ValueError(f"length does not fit an int32 prefix: {count}") from e


def unpack_length(data: bytes) -> int:
    (count,) = LENGTH_PREFIX.unpack(data)
    if count < 0:
        raise FramingError(f"negative length prefix: {count}")
    return count


# ----------------------------------------------------------------------
# Varint string prefix
# ----------------------------------------------------------------------

def encode_varint(value: int) -> bytes:
    """7-bit encode a non-negative 32-bit count, low groups first."""
    if value < 0 or value > 0xFFFFFFFF:
        raise ValueError(f"varint out of range: {value}")
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def decode_varint(data: bytes) -> int:
    """Decode a complete varint as produced by :func:`encode_varint`."""
    if not data or len(data) > VARINT_MAX_BYTES:
        raise FramingError("malformed 7-bit encoded length")
    value = 0
    for shift, byte in enumerate(data):
        value |= (byte & 0x7F) << (7 * shift)
    if data[-1] & 0x80 or value > 0x7FFFFFFF:
        raise FramingError("malformed 7-bit encoded length")
    return value


def varint_continues(byte: int) -> bool:
    return bool(byte & 0x80)


def encode_string(value: str | None) -> bytes:
    """Varint byte count plus UTF-8 bytes; ``None`` is written as ``""``."""
    if value is None:
        value = ""
    elif not isinstance(value, str):
        raise ValueError(f"string expects str or None, got {type(value).__name__}")
    raw = value.encode("utf-8")
    return encode_varint(len(raw)) + raw


def decode_text(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise FramingError(f"invalid UTF-8 in string frame: {e}") from e


# ----------------------------------------------------------------------
# Char
# ----------------------------------------------------------------------

def encode_char(value: str) -> bytes:
    if not isinstance(value, str) or len(value) != 1:
        raise ValueError(f"char must be a single character string, got {value!r}")
    return value.encode("utf-8")


def utf8_sequence_length(lead: int) -> int:
    """Number of bytes in the UTF-8 sequence starting with ``lead``."""
    if lead < 0x80:
        return 1
    if 0xC2 <= lead <= 0xDF:
        return 2
    if 0xE0 <= lead <= 0xEF:
        return 3
    if 0xF0 <= lead <= 0xF4:
        return 4
    raise FramingError(f"invalid UTF-8 lead byte in char frame: 0x{lead:02x}")


def decode_char(raw: bytes) -> str:
    text = decode_text(raw)
    if len(text) != 1:
        raise FramingError("char frame does not hold exactly one character")
    return text


# ----------------------------------------------------------------------
# Decimal
# ----------------------------------------------------------------------

def encode_decimal(value: Decimal) -> bytes:
    """Encode a Decimal as a 96-bit coefficient, a scale and a sign."""
    if isinstance(value, bool) or not isinstance(value, (Decimal, int, float)):
        raise ValueError(f"decimal expects a Decimal or number, got {type(value).__name__}")
    value = Decimal(value)
    if not value.is_finite():
        raise ValueError(f"decimal value must be finite: {value!r}")
    sign, digits, exponent = value.as_tuple()
    coefficient = int("".join(map(str, digits)) or "0")
    if exponent > 0:
        coefficient *= 10 ** exponent
        scale = 0
    else:
        scale = -exponent
    if scale > DECIMAL_MAX_SCALE:
        raise ValueError(f"decimal scale {scale} exceeds {DECIMAL_MAX_SCALE}: {value!r}")
    if coefficient >> 96:
        raise ValueError(f"decimal value out of range: {value!r}")

    flags = scale << 16
    if sign:
        flags |= _DECIMAL_SIGN
    lo = coefficient & 0xFFFFFFFF
    mid = (coefficient >> 32) & 0xFFFFFFFF
    hi = (coefficient >> 64) & 0xFFFFFFFF
    return _DECIMAL_PARTS.pack(lo, mid, hi, flags)


def decode_decimal(data: bytes) -> Decimal:
    lo, mid, hi, flags = _DECIMAL_PARTS.unpack(data)
    if flags & ~(_DECIMAL_SIGN | _DECIMAL_SCALE_MASK):
        raise FramingError(f"invalid decimal flags: 0x{flags:08x}")
    scale = (flags & _DECIMAL_SCALE_MASK) >> 16
    if scale > DECIMAL_MAX_SCALE:
        raise FramingError(f"invalid decimal scale: {scale}")
    coefficient = lo | (mid << 32) | (hi << 64)
    sign = 1 if flags & _DECIMAL_SIGN else 0
    digits = tuple(int(d) for d in str(coefficient))
    return Decimal((sign, digits, -scale))


# ----------------------------------------------------------------------
# Timestamp
# ----------------------------------------------------------------------

def datetime_to_ticks(value: datetime) -> int:
    """Count 100ns ticks since 0001-01-01; aware values are taken in UTC."""
    if not isinstance(value, datetime):
        raise ValueError(f"timestamp expects a datetime, got {type(value).__name__}")
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    delta = value - TICKS_EPOCH
    return (
        (delta.days * 86400 + delta.seconds) * TICKS_PER_SECOND
        + delta.microseconds * 10
    )


def ticks_to_datetime(ticks: int) -> datetime:
    if ticks < 0 or ticks > MAX_TICKS:
        raise FramingError(f"timestamp ticks out of range: {ticks}")
    return TICKS_EPOCH + timedelta(microseconds=ticks // 10)


def encode_timestamp(value: datetime) -> bytes:
    return pack_fixed(ValueKind.INT64, datetime_to_ticks(value))


def decode_timestamp(data: bytes) -> datetime:
    return ticks_to_datetime(unpack_fixed(ValueKind.INT64, data))
