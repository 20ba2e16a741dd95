"""Security helpers: key derivation, block ciphers and encrypted value streams.

This package provides:
- PBKDF2 key/IV derivation from a password and an 8-byte salt
- CBC/PKCS#7 transforms for AES, DES, RC2, Rijndael and TripleDES
- Encrypted writer/reader sessions framing typed values
- A password context with single-value base64 helpers
"""

from .kdf import generate_salt, derive_bytes, derive_key_and_iv
from .ciphers import BlockTransform, CipherSpec, get_cipher
from .streams import EncryptionReader, EncryptionWriter, open_reader, open_writer
from .registry import infer_kind, resolve_kind, is_supported
from .encryption import Encryption, new_context, encode_bytes, decode_bytes
from sealstream.core.models import Algorithm, ValueKind

__all__ = [
    "generate_salt",
    "derive_bytes",
    "derive_key_and_iv",
    "BlockTransform",
    "CipherSpec",
    "get_cipher",
    "EncryptionReader",
    "EncryptionWriter",
    "open_reader",
    "open_writer",
    "infer_kind",
    "resolve_kind",
    "is_supported",
    "Encryption",
    "new_context",
    "encode_bytes",
    "decode_bytes",
    "Algorithm",
    "ValueKind",
]
