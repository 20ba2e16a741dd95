"""
Password-based encryption context for SealStream.

An ``Encryption`` instance holds a password and an algorithm and nothing
else. Every stream it opens derives its own key and IV from a fresh salt,
so one instance can be shared by any number of sessions.

Two ways to use it:

- streaming: :meth:`Encryption.open_writer` / :meth:`Encryption.open_reader`
  frame any number of typed values into one encrypted stream
- single values: :meth:`Encryption.encrypt_value` / :meth:`Encryption.decrypt_value`
  turn one value into a base64 token and back

Single-value calls pay for a full session each (salt, PBKDF2 run, cipher
setup, one padded block at least). Use a stream to amortize that cost over
many values.
"""

from __future__ import annotations

import base64
import binascii
import io
from typing import Any, Optional

from sealstream.core.exceptions import InvalidPasswordError
from sealstream.core.models import Algorithm, ValueKind
from .ciphers import CipherSpec, get_cipher
from .streams import EncryptionReader, EncryptionWriter, StreamTarget, open_reader, open_writer
from . import registry


def encode_bytes(data: bytes) -> str:
    """Standard base64 without line breaks."""
    return base64.b64encode(data).decode("ascii")


def decode_bytes(text: str) -> bytes:
    """Inverse of :func:`encode_bytes`; raises ``ValueError`` on malformed input."""
    try:
        return base64.b64decode(text, validate=True)
    except binascii.Error as e:
        raise ValueError(f"invalid base64 input: {e}") from e


class Encryption:
    """
    Encryption and decryption services for one password and algorithm.

    The password is stripped of surrounding whitespace; an empty result
    raises :class:`InvalidPasswordError`.
    """

    def __init__(self, password: str, algorithm: Algorithm | str = Algorithm.AES):
        if password is None or not str(password).strip():
            raise InvalidPasswordError("Password is required.")
        self._password = str(password).strip()
        self._spec: CipherSpec = get_cipher(algorithm)

    def __repr__(self) -> str:
        # never include the password
        return f"Encryption(algorithm={self.algorithm.name})"

    @property
    def algorithm(self) -> Algorithm:
        return self._spec.algorithm

    @property
    def cipher(self) -> CipherSpec:
        return self._spec

    # ------------------------------------------------------------------
    # Streams
    # ------------------------------------------------------------------

    def open_writer(self, target: StreamTarget, close_stream: bool = False) -> EncryptionWriter:
        """
        Start an encrypted stream on a binary file object or a path.

        Paths are opened for writing (truncating) and closed with the writer.
        A caller's stream is left open unless ``close_stream`` is set.
        """
        return open_writer(target, self._password, self._spec.algorithm, close_stream=close_stream)

    def open_reader(self, source: StreamTarget, close_stream: bool = False) -> EncryptionReader:
        """Open an encrypted stream from a binary file object or a path."""
        return open_reader(source, self._password, self._spec.algorithm, close_stream=close_stream)

    # ------------------------------------------------------------------
    # Single values
    # ------------------------------------------------------------------

    def encrypt_value(self, value: Any, kind: ValueKind | str | type | None = None) -> Optional[str]:
        """
        Encrypt one value and return it as a base64 token.

        ``kind`` selects the framing; when omitted it is inferred from the
        value's type (``int`` becomes int32 when it fits, ``float`` float64,
        ``str`` string and so on). ``None`` encrypts to ``None``.
        """
        if value is None and kind is None:
            return None
        resolved = registry.resolve_kind(kind) if kind is not None else registry.infer_kind(value)
        codec = registry.get_codec(resolved)

        sink = io.BytesIO()
        with self.open_writer(sink) as writer:
            codec.encode(writer, value)
        return encode_bytes(sink.getvalue())

    def decrypt_value(self, encrypted_value: str, kind: ValueKind | str | type) -> Any:
        """
        Decrypt a token produced by :meth:`encrypt_value` as a value of ``kind``.

        The whole token is decrypted and its padding checked before the value
        is decoded, so a wrong password or algorithm raises
        :class:`DecryptionFailedError` instead of yielding a garbage value.
        """
        codec = registry.get_codec(registry.resolve_kind(kind))
        with self.open_reader(io.BytesIO(decode_bytes(encrypted_value))) as reader:
            reader.preload()
            return codec.decode(reader)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    encode_bytes = staticmethod(encode_bytes)
    decode_bytes = staticmethod(decode_bytes)

    @staticmethod
    def is_type_supported(kind: Any) -> bool:
        """True when ``kind`` (a ValueKind, kind name or Python type) can be encrypted."""
        return registry.is_supported(kind)


def new_context(password: str, algorithm: Algorithm | str = Algorithm.AES) -> Encryption:
    return Encryption(password, algorithm)
