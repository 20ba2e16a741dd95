"""
Unit tests for core enumerations and the error hierarchy.
"""

import pytest

from sealstream.core.exceptions import (
    DecryptionFailedError,
    FramingError,
    InvalidPasswordError,
    PaddingInvalidError,
    SealStreamError,
    TruncatedStreamError,
    UnsupportedAlgorithmError,
    UnsupportedTypeError,
)
from sealstream.core.models import Algorithm, ValueKind, normalize_name


# ==============================================================================
# Enumerations
# ==============================================================================

class TestEnums:
    def test_algorithm_members(self):
        assert [a.value for a in Algorithm] == ["aes", "des", "rc2", "rijndael", "triple_des"]

    def test_value_kind_is_closed_set(self):
        assert len(ValueKind) == 17
        assert ValueKind("byte_array") is ValueKind.BYTE_ARRAY

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("AES", "aes"),
            ("  Rijndael ", "rijndael"),
            ("TripleDES", "triple_des"),
            ("3des", "triple_des"),
            ("triple-des", "triple_des"),
            ("byte array", "byte_array"),
            ("ByteArray", "byte_array"),
            ("DateTime", "timestamp"),
            ("Double", "float64"),
            ("Single", "float32"),
            ("SByte", "int8"),
            ("Byte", "uint8"),
            ("Boolean", "bool"),
            ("int32", "int32"),
        ],
    )
    def test_normalize_name(self, raw, expected):
        assert normalize_name(raw) == expected


# ==============================================================================
# Exceptions
# ==============================================================================

class TestExceptions:
    @pytest.mark.parametrize(
        "exc",
        [
            InvalidPasswordError,
            UnsupportedAlgorithmError,
            UnsupportedTypeError,
            FramingError,
            TruncatedStreamError,
            DecryptionFailedError,
        ],
    )
    def test_all_derive_from_base(self, exc):
        assert issubclass(exc, SealStreamError)

    def test_invalid_password_is_a_value_error(self):
        assert issubclass(InvalidPasswordError, ValueError)

    def test_truncation_is_a_framing_error(self):
        assert issubclass(TruncatedStreamError, FramingError)

    def test_padding_alias(self):
        assert PaddingInvalidError is DecryptionFailedError
