"""Block cipher provider for password-based stream encryption.

Each supported algorithm maps to a ``CipherSpec`` that knows its key and
block sizes and can build encrypting/decrypting transforms. Every
transform runs in CBC mode with PKCS#7 padding:

    AES        256-bit key, 128-bit block
    DES         64-bit key,  64-bit block
    RC2        128-bit key,  64-bit block
    Rijndael   256-bit key, 128-bit block (same cipher as AES at this block size)
    TripleDES  192-bit key,  64-bit block

DES runs as TripleDES keyed K1=K2=K3 (the 8-byte key repeated three times),
which makes the encrypt-decrypt-encrypt stages reduce to single DES.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from cryptography.hazmat.decrepit.ciphers.algorithms import RC2, TripleDES
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from sealstream.core.exceptions import DecryptionFailedError, UnsupportedAlgorithmError
from sealstream.core.models import Algorithm, normalize_name


class BlockTransform:
    """
    One-shot CBC encryptor or decryptor bound to a key and IV.

    Feed data through :meth:`update` and call :meth:`finalize` exactly once.
    Padding is added on the way in and validated and stripped on the way out;
    validation failures surface as :class:`DecryptionFailedError`.
    """

    def __init__(self, cipher: Cipher, block_size_bits: int, decrypt: bool):
        self.decrypting = decrypt
        if decrypt:
            self._context = cipher.decryptor()
            self._padding = padding.PKCS7(block_size_bits).unpadder()
        else:
            self._context = cipher.encryptor()
            self._padding = padding.PKCS7(block_size_bits).padder()
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    def update(self, data: bytes) -> bytes:
        if self._finalized:
            raise ValueError("transform already finalized")
        if self.decrypting:
            return self._padding.update(self._context.update(data))
        return self._context.update(self._padding.update(data))

    def finalize(self) -> bytes:
        if self._finalized:
            raise ValueError("transform already finalized")
        self._finalized = True
        if not self.decrypting:
            tail = self._padding.finalize()
            return self._context.update(tail) + self._context.finalize()

        try:
            # raises when the ciphertext is not block aligned
            tail = self._context.finalize()
            return self._padding.update(tail) + self._padding.finalize()
        except ValueError as e:
            raise DecryptionFailedError(
                "decryption failed: invalid padding (wrong password, wrong algorithm or corrupted data)"
            ) from e


@dataclass(frozen=True)
class CipherSpec:
    """Key/block geometry of one algorithm plus the factory for its cipher."""

    algorithm: Algorithm
    key_size_bits: int
    block_size_bits: int
    factory: Callable[[bytes], object]

    @property
    def key_size(self) -> int:
        return self.key_size_bits // 8

    @property
    def block_size(self) -> int:
        return self.block_size_bits // 8

    def _cipher(self, key: bytes, iv: bytes) -> Cipher:
        if len(key) != self.key_size:
            raise ValueError(f"{self.algorithm.name} key must be {self.key_size} bytes, got {len(key)}")
        if len(iv) != self.block_size:
            raise ValueError(f"{self.algorithm.name} IV must be {self.block_size} bytes, got {len(iv)}")
        return Cipher(self.factory(key), modes.CBC(iv))

    def new_encryptor(self, key: bytes, iv: bytes) -> BlockTransform:
        return BlockTransform(self._cipher(key, iv), self.block_size_bits, decrypt=False)

    def new_decryptor(self, key: bytes, iv: bytes) -> BlockTransform:
        return BlockTransform(self._cipher(key, iv), self.block_size_bits, decrypt=True)


def _single_des(key: bytes) -> TripleDES:
    return TripleDES(key * 3)


CIPHERS: Dict[Algorithm, CipherSpec] = {
    Algorithm.AES: CipherSpec(Algorithm.AES, 256, 128, algorithms.AES),
    Algorithm.DES: CipherSpec(Algorithm.DES, 64, 64, _single_des),
    Algorithm.RC2: CipherSpec(Algorithm.RC2, 128, 64, RC2),
    Algorithm.RIJNDAEL: CipherSpec(Algorithm.RIJNDAEL, 256, 128, algorithms.AES),
    Algorithm.TRIPLE_DES: CipherSpec(Algorithm.TRIPLE_DES, 192, 64, TripleDES),
}


def resolve_algorithm(algorithm: Algorithm | str | None) -> Algorithm:
    """Accept an ``Algorithm`` member or its name; ``None`` means AES."""
    if algorithm is None:
        return Algorithm.AES
    if isinstance(algorithm, Algorithm):
        return algorithm
    if isinstance(algorithm, str):
        try:
            return Algorithm(normalize_name(algorithm))
        except ValueError:
            pass
    raise UnsupportedAlgorithmError(f"unsupported algorithm: {algorithm!r}")


def get_cipher(algorithm: Algorithm | str | None) -> CipherSpec:
    resolved = resolve_algorithm(algorithm)
    spec: Optional[CipherSpec] = CIPHERS.get(resolved)
    if spec is None:
        raise UnsupportedAlgorithmError(f"unsupported algorithm: {resolved.name}")
    return spec
