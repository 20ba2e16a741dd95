"""
Closed enumerations shared by the cipher table and the value codecs
"""

from enum import Enum


class Algorithm(Enum):
    # Supported block cipher families
    AES = "aes"
    DES = "des"
    RC2 = "rc2"
    RIJNDAEL = "rijndael"
    TRIPLE_DES = "triple_des"


class ValueKind(Enum):
    # Every value kind that can be framed into a stream, 17 in total
    STRING = "string"
    BOOL = "bool"
    CHAR = "char"
    INT8 = "int8"
    UINT8 = "uint8"
    INT16 = "int16"
    UINT16 = "uint16"
    INT32 = "int32"
    UINT32 = "uint32"
    INT64 = "int64"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    DECIMAL = "decimal"
    TIMESTAMP = "timestamp"
    BYTE_ARRAY = "byte_array"
    STRING_ARRAY = "string_array"


def normalize_name(name: str) -> str:
    """Fold user supplied names like ``TripleDES`` or ``byte-array`` to enum values."""
    folded = name.strip().lower().replace("-", "_").replace(" ", "_")
    aliases = {
        "tripledes": "triple_des",
        "3des": "triple_des",
        "bytearray": "byte_array",
        "bytes": "byte_array",
        "stringarray": "string_array",
        "datetime": "timestamp",
        "boolean": "bool",
        "sbyte": "int8",
        "byte": "uint8",
        "single": "float32",
        "double": "float64",
    }
    return aliases.get(folded, folded)
