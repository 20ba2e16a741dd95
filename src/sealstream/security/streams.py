"""Encrypted value streams.

Stream layout:

    [0..8)  salt        8 random bytes, written in the clear
    [8..N)  ciphertext  CBC/PKCS#7 encryption of the framed values, in write order

The salt feeds PBKDF2 together with the password to produce the key and IV,
so a reader only needs the password and the algorithm to follow a writer.
There is no overall length prefix: the reader must issue the same sequence of
typed reads the writer issued.

Both session classes own their cipher transform. The underlying stream is
closed on ``close()`` when the session opened it from a path, or when the
caller passes ``close_stream=True``.
"""
from __future__ import annotations

import logging
import os
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import BinaryIO, List, Optional, Sequence, Union

from sealstream.core import framing
from sealstream.core.exceptions import TruncatedStreamError
from sealstream.core.models import Algorithm, ValueKind
from .ciphers import BlockTransform, CipherSpec, get_cipher
from .kdf import SALT_LENGTH, derive_key_and_iv, generate_salt
from . import registry


logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

StreamTarget = Union[BinaryIO, str, os.PathLike]


class EncryptionWriter:
    """Frames typed values and pushes them through an encrypting transform."""

    def __init__(
        self,
        stream: BinaryIO,
        transform: BlockTransform,
        spec: CipherSpec,
        close_stream: bool = False,
    ):
        self._stream = stream
        self._transform: Optional[BlockTransform] = transform
        self.spec = spec
        self.close_stream = close_stream
        self.bytes_written = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._transform is None

    def __enter__(self) -> "EncryptionWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def flush(self) -> None:
        """Flush whole cipher blocks already produced to the underlying stream."""
        self._require_open()
        self._stream.flush()

    def close(self) -> None:
        """
        Write the final padded block, drop the transform and, when owned,
        close the underlying stream. Safe to call more than once.
        """
        if self._transform is None:
            return
        transform, self._transform = self._transform, None
        try:
            self._stream.write(transform.finalize())
            self._stream.flush()
        finally:
            if self.close_stream:
                self._stream.close()
            logger.debug(
                "closed %s writer after %d plaintext bytes",
                self.spec.algorithm.name,
                self.bytes_written,
            )

    def _require_open(self) -> BlockTransform:
        if self._transform is None:
            raise ValueError("write to a closed EncryptionWriter")
        return self._transform

    def _emit(self, frame: bytes) -> None:
        transform = self._require_open()
        self._stream.write(transform.update(frame))
        self.bytes_written += len(frame)

    # ------------------------------------------------------------------
    # Typed writes
    # ------------------------------------------------------------------

    def write(self, value, kind: ValueKind | str | type | None = None) -> None:
        """Write ``value`` using the codec registered for ``kind`` (inferred when omitted)."""
        resolved = registry.resolve_kind(kind) if kind is not None else registry.infer_kind(value)
        registry.get_codec(resolved).encode(self, value)

    def write_string(self, value: Optional[str]) -> None:
        self._emit(framing.encode_string(value))

    def write_bool(self, value: bool) -> None:
        self._emit(framing.pack_fixed(ValueKind.BOOL, value))

    def write_char(self, value: str) -> None:
        self._emit(framing.encode_char(value))

    def write_int8(self, value: int) -> None:
        self._emit(framing.pack_fixed(ValueKind.INT8, value))

    def write_uint8(self, value: int) -> None:
        self._emit(framing.pack_fixed(ValueKind.UINT8, value))

    def write_int16(self, value: int) -> None:
        self._emit(framing.pack_fixed(ValueKind.INT16, value))

    def write_uint16(self, value: int) -> None:
        self._emit(framing.pack_fixed(ValueKind.UINT16, value))

    def write_int32(self, value: int) -> None:
        self._emit(framing.pack_fixed(ValueKind.INT32, value))

    def write_uint32(self, value: int) -> None:
        self._emit(framing.pack_fixed(ValueKind.UINT32, value))

    def write_int64(self, value: int) -> None:
        self._emit(framing.pack_fixed(ValueKind.INT64, value))

    def write_uint64(self, value: int) -> None:
        self._emit(framing.pack_fixed(ValueKind.UINT64, value))

    def write_float32(self, value: float) -> None:
        self._emit(framing.pack_fixed(ValueKind.FLOAT32, value))

    def write_float64(self, value: float) -> None:
        self._emit(framing.pack_fixed(ValueKind.FLOAT64, value))

    def write_decimal(self, value: Decimal) -> None:
        self._emit(framing.encode_decimal(value))

    def write_timestamp(self, value: datetime) -> None:
        self._emit(framing.encode_timestamp(value))

    def write_byte_array(self, value: Optional[bytes]) -> None:
        if value is None:
            data = b""
        elif isinstance(value, (bytes, bytearray, memoryview)):
            data = bytes(value)
        else:
            raise ValueError(f"byte_array expects bytes or None, got {type(value).__name__}")
        # prefix and payload go out as one frame
        self._emit(framing.pack_length(len(data)) + data)

    def write_string_array(self, value: Optional[Sequence[str]]) -> None:
        # a bare str is a sequence too; refuse to split it into characters
        if value is None:
            items = []
        elif isinstance(value, (list, tuple)):
            items = list(value)
        else:
            raise ValueError(f"string_array expects a list of str or None, got {type(value).__name__}")
        frame = bytearray(framing.pack_length(len(items)))
        for item in items:
            frame += framing.encode_string(item)
        self._emit(bytes(frame))


class EncryptionReader:
    """
    Pulls ciphertext through a decrypting transform and decodes typed values.

    Padding is only checked once the source is drained. Reads served from
    blocks decrypted before that point decode whatever the key produced, so
    under a wrong password or algorithm they can return garbage values before
    :class:`DecryptionFailedError` is raised. Call
    :meth:`preload` first when every value must be validated before use;
    it decrypts the whole source and checks the padding up front.
    """

    def __init__(
        self,
        stream: BinaryIO,
        transform: BlockTransform,
        spec: CipherSpec,
        close_stream: bool = False,
        chunk_size: int = CHUNK_SIZE,
    ):
        self._stream = stream
        self._transform: Optional[BlockTransform] = transform
        self.spec = spec
        self.close_stream = close_stream
        self.chunk_size = chunk_size
        self._buffer = bytearray()
        self._eof = False
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "EncryptionReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Drop the transform and buffered plaintext; safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._transform = None
        try:
            for i in range(len(self._buffer)):
                self._buffer[i] = 0
            self._buffer = bytearray()
        finally:
            if self.close_stream:
                self._stream.close()
            logger.debug("closed %s reader", self.spec.algorithm.name)

    # ------------------------------------------------------------------
    # Buffering
    # ------------------------------------------------------------------

    def _pull(self) -> bool:
        """Decrypt one more chunk into the buffer; False once the source is drained."""
        if self._closed or self._transform is None:
            raise ValueError("read from a closed EncryptionReader")
        if self._eof:
            return False
        chunk = self._stream.read(self.chunk_size)
        if chunk:
            self._buffer += self._transform.update(chunk)
        else:
            self._eof = True
            # padding is validated here, before any truncation is reported
            self._buffer += self._transform.finalize()
        return True

    def _read_exact(self, count: int) -> bytes:
        while len(self._buffer) < count:
            if not self._pull():
                raise TruncatedStreamError(
                    f"stream ended: needed {count} bytes, {len(self._buffer)} available"
                )
        data = bytes(self._buffer[:count])
        del self._buffer[:count]
        return data

    def preload(self) -> None:
        """Decrypt the rest of the source now, validating the final padding block."""
        while self._pull():
            pass

    def read_to_end(self) -> bytes:
        """Return all plaintext not yet consumed."""
        self.preload()
        data = bytes(self._buffer)
        self._buffer.clear()
        return data

    def at_end(self) -> bool:
        """True when every plaintext byte has been consumed."""
        while not self._buffer:
            if not self._pull():
                return True
        return False

    # ------------------------------------------------------------------
    # Typed reads
    # ------------------------------------------------------------------

    def read(self, kind: ValueKind | str | type):
        """Read one value using the codec registered for ``kind``."""
        return registry.get_codec(registry.resolve_kind(kind)).decode(self)

    def _read_fixed(self, kind: ValueKind):
        return framing.unpack_fixed(kind, self._read_exact(framing.FIXED_WIDTH[kind].size))

    def _read_varint(self) -> int:
        raw = bytearray()
        while True:
            byte = self._read_exact(1)[0]
            raw.append(byte)
            if not framing.varint_continues(byte) or len(raw) == framing.VARINT_MAX_BYTES:
                return framing.decode_varint(bytes(raw))

    def _read_length(self) -> int:
        return framing.unpack_length(self._read_exact(framing.LENGTH_PREFIX.size))

    def read_string(self) -> str:
        return framing.decode_text(self._read_exact(self._read_varint()))

    def read_bool(self) -> bool:
        return self._read_fixed(ValueKind.BOOL)

    def read_char(self) -> str:
        lead = self._read_exact(1)
        size = framing.utf8_sequence_length(lead[0])
        if size == 1:
            return framing.decode_char(lead)
        return framing.decode_char(lead + self._read_exact(size - 1))

    def read_int8(self) -> int:
        return self._read_fixed(ValueKind.INT8)

    def read_uint8(self) -> int:
        return self._read_fixed(ValueKind.UINT8)

    def read_int16(self) -> int:
        return self._read_fixed(ValueKind.INT16)

    def read_uint16(self) -> int:
        return self._read_fixed(ValueKind.UINT16)

    def read_int32(self) -> int:
        return self._read_fixed(ValueKind.INT32)

    def read_uint32(self) -> int:
        return self._read_fixed(ValueKind.UINT32)

    def read_int64(self) -> int:
        return self._read_fixed(ValueKind.INT64)

    def read_uint64(self) -> int:
        return self._read_fixed(ValueKind.UINT64)

    def read_float32(self) -> float:
        return self._read_fixed(ValueKind.FLOAT32)

    def read_float64(self) -> float:
        return self._read_fixed(ValueKind.FLOAT64)

    def read_decimal(self) -> Decimal:
        return framing.decode_decimal(self._read_exact(framing.DECIMAL_SIZE))

    def read_timestamp(self) -> datetime:
        return framing.decode_timestamp(self._read_exact(framing.FIXED_WIDTH[ValueKind.INT64].size))

    def read_byte_array(self) -> bytes:
        count = self._read_length()
        return self._read_exact(count) if count else b""

    def read_string_array(self) -> List[str]:
        count = self._read_length()
        return [self.read_string() for _ in range(count)]


# ----------------------------------------------------------------------
# Session construction
# ----------------------------------------------------------------------

def _open_target(target: StreamTarget, mode: str, close_stream: bool):
    if isinstance(target, (str, os.PathLike)):
        return open(Path(target).expanduser(), mode), True
    return target, close_stream


def _read_salt(stream: BinaryIO) -> bytes:
    salt = b""
    while len(salt) < SALT_LENGTH:
        chunk = stream.read(SALT_LENGTH - len(salt))
        if not chunk:
            raise TruncatedStreamError(
                "reached end of input stream before reading encryption metadata"
            )
        salt += chunk
    return salt


def open_writer(
    target: StreamTarget,
    password: str,
    algorithm: Algorithm | str | None = None,
    close_stream: bool = False,
) -> EncryptionWriter:
    """
    Start an encrypted stream on ``target`` (binary file object or path).

    A fresh salt is written first, then key and IV are derived from it and
    the returned writer encrypts everything after.
    """
    spec = get_cipher(algorithm)
    stream, owned = _open_target(target, "wb", close_stream)
    try:
        salt = generate_salt()
        stream.write(salt)
        key, iv = derive_key_and_iv(password, salt, spec.key_size, spec.block_size)
        transform = spec.new_encryptor(key, iv)
        del key, iv
    except BaseException:
        if owned:
            stream.close()
        raise
    logger.debug("opened %s writer", spec.algorithm.name)
    return EncryptionWriter(stream, transform, spec, close_stream=owned)


def open_reader(
    source: StreamTarget,
    password: str,
    algorithm: Algorithm | str | None = None,
    close_stream: bool = False,
) -> EncryptionReader:
    """
    Open an encrypted stream from ``source`` (binary file object or path).

    Exactly 8 salt bytes are consumed before the key and IV are derived;
    fewer raise :class:`TruncatedStreamError`.
    """
    spec = get_cipher(algorithm)
    stream, owned = _open_target(source, "rb", close_stream)
    try:
        salt = _read_salt(stream)
        key, iv = derive_key_and_iv(password, salt, spec.key_size, spec.block_size)
        transform = spec.new_decryptor(key, iv)
        del key, iv
    except BaseException:
        if owned:
            stream.close()
        raise
    logger.debug("opened %s reader", spec.algorithm.name)
    return EncryptionReader(stream, transform, spec, close_stream=owned)
