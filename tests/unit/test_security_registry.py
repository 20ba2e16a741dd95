"""Unit tests for the value kind registry."""

from datetime import datetime
from decimal import Decimal

import pytest
from sealstream.core.exceptions import UnsupportedTypeError
from sealstream.core.models import ValueKind
from sealstream.security import registry


def test_seventeen_kinds_all_registered():
    assert len(ValueKind) == 17
    assert set(registry.CODECS) == set(ValueKind)
    for kind, codec in registry.CODECS.items():
        assert codec.kind is kind


def test_codec_table_is_read_only():
    with pytest.raises(TypeError):
        registry.CODECS[ValueKind.INT32] = None


@pytest.mark.parametrize(
    "value, kind",
    [
        (True, ValueKind.BOOL),
        (55, ValueKind.INT32),
        (-(2 ** 31), ValueKind.INT32),
        (2 ** 31, ValueKind.INT64),
        (-(2 ** 63), ValueKind.INT64),
        (2 ** 64 - 1, ValueKind.UINT64),
        (123.45, ValueKind.FLOAT64),
        (Decimal("1.5"), ValueKind.DECIMAL),
        (datetime(2020, 1, 1), ValueKind.TIMESTAMP),
        (b"abc", ValueKind.BYTE_ARRAY),
        (bytearray(b"abc"), ValueKind.BYTE_ARRAY),
        ("hello", ValueKind.STRING),
        (["a", "b"], ValueKind.STRING_ARRAY),
        (("a",), ValueKind.STRING_ARRAY),
    ],
)
def test_infer_kind(value, kind):
    assert registry.infer_kind(value) is kind


@pytest.mark.parametrize("value", [{"a": 1}, [1, 2], object(), 1j])
def test_infer_kind_unsupported(value):
    with pytest.raises(UnsupportedTypeError, match="not supported"):
        registry.infer_kind(value)


@pytest.mark.parametrize(
    "kind, expected",
    [
        (ValueKind.UINT16, ValueKind.UINT16),
        ("int32", ValueKind.INT32),
        ("INT64", ValueKind.INT64),
        ("byte-array", ValueKind.BYTE_ARRAY),
        ("datetime", ValueKind.TIMESTAMP),
        ("double", ValueKind.FLOAT64),
        (int, ValueKind.INT32),
        (float, ValueKind.FLOAT64),
        (str, ValueKind.STRING),
        (bool, ValueKind.BOOL),
        (bytes, ValueKind.BYTE_ARRAY),
        (Decimal, ValueKind.DECIMAL),
        (datetime, ValueKind.TIMESTAMP),
        (list, ValueKind.STRING_ARRAY),
    ],
)
def test_resolve_kind(kind, expected):
    assert registry.resolve_kind(kind) is expected


@pytest.mark.parametrize("kind", ["int128", "", dict, complex, 3])
def test_resolve_kind_unsupported_names_the_kind(kind):
    with pytest.raises(UnsupportedTypeError) as excinfo:
        registry.resolve_kind(kind)
    assert str(getattr(kind, "__name__", kind)) in str(excinfo.value)


def test_get_codec_rejects_non_kinds():
    with pytest.raises(UnsupportedTypeError):
        registry.get_codec("int32")


def test_is_supported():
    assert registry.is_supported(int)
    assert registry.is_supported("string_array")
    assert not registry.is_supported(set)
