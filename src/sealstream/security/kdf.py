import os
from typing import Tuple

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC


SALT_LENGTH = 8
ITERATIONS = 1000


def generate_salt(length: int = SALT_LENGTH) -> bytes:
    """Return a cryptographically secure random salt."""
    return os.urandom(length)


def derive_bytes(password: str | bytes, salt: bytes, length: int) -> bytes:
    """
    Derive ``length`` pseudorandom bytes from a password using PBKDF2-HMAC-SHA1
    with 1000 iterations. Same inputs always give the same bytes.
    """
    if len(salt) != SALT_LENGTH:
        raise ValueError(f"salt must be exactly {SALT_LENGTH} bytes, got {len(salt)}")
    if length <= 0:
        raise ValueError("output length must be positive")
    if isinstance(password, str):
        password = password.encode("utf-8")

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA1(),
        length=length,
        salt=salt,
        iterations=ITERATIONS,
    )
    return kdf.derive(password)


def derive_key_and_iv(
    password: str | bytes,
    salt: bytes,
    key_size: int,
    iv_size: int,
) -> Tuple[bytes, bytes]:
    """
    Derive a key and an IV (sizes in bytes) from one PBKDF2 run.
    The key is the leading ``key_size`` bytes, the IV the ``iv_size`` after it.
    """
    material = bytearray(derive_bytes(password, salt, key_size + iv_size))
    try:
        return bytes(material[:key_size]), bytes(material[key_size:])
    finally:
        # best-effort wipe of the joined buffer
        for i in range(len(material)):
            material[i] = 0
