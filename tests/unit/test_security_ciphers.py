"""Unit tests for the block cipher provider."""

import os
import warnings

import pytest
from cryptography.utils import CryptographyDeprecationWarning
from sealstream.core.exceptions import DecryptionFailedError, UnsupportedAlgorithmError
from sealstream.core.models import Algorithm
from sealstream.security.ciphers import CIPHERS, get_cipher, resolve_algorithm


EXPECTED_SIZES = {
    Algorithm.AES: (256, 128),
    Algorithm.DES: (64, 64),
    Algorithm.RC2: (128, 64),
    Algorithm.RIJNDAEL: (256, 128),
    Algorithm.TRIPLE_DES: (192, 64),
}


def _key_iv(spec):
    return os.urandom(spec.key_size), os.urandom(spec.block_size)


# ==============================================================================
# Tests: Algorithm table
# ==============================================================================

def test_every_algorithm_has_a_cipher():
    assert set(CIPHERS) == set(Algorithm)


@pytest.mark.parametrize("algorithm", list(Algorithm))
def test_key_and_block_sizes(algorithm):
    spec = get_cipher(algorithm)
    assert (spec.key_size_bits, spec.block_size_bits) == EXPECTED_SIZES[algorithm]
    assert spec.key_size == spec.key_size_bits // 8
    assert spec.block_size == spec.block_size_bits // 8


@pytest.mark.parametrize(
    "name, expected",
    [
        ("aes", Algorithm.AES),
        ("AES", Algorithm.AES),
        ("des", Algorithm.DES),
        ("Rc2", Algorithm.RC2),
        ("rijndael", Algorithm.RIJNDAEL),
        ("TripleDES", Algorithm.TRIPLE_DES),
        ("triple-des", Algorithm.TRIPLE_DES),
        ("3des", Algorithm.TRIPLE_DES),
    ],
)
def test_resolve_algorithm_by_name(name, expected):
    assert resolve_algorithm(name) is expected


def test_resolve_algorithm_defaults_to_aes():
    assert resolve_algorithm(None) is Algorithm.AES


@pytest.mark.parametrize("bad", ["blowfish", "", 5, object()])
def test_unsupported_algorithm(bad):
    with pytest.raises(UnsupportedAlgorithmError):
        get_cipher(bad)


# ==============================================================================
# Tests: Transforms
# ==============================================================================

@pytest.mark.parametrize("algorithm", list(Algorithm))
@pytest.mark.parametrize("size", [0, 1, 7, 8, 15, 16, 17, 100])
def test_transform_roundtrip_with_padding(algorithm, size):
    spec = get_cipher(algorithm)
    key, iv = _key_iv(spec)
    plaintext = os.urandom(size)

    enc = spec.new_encryptor(key, iv)
    ciphertext = enc.update(plaintext) + enc.finalize()
    # PKCS#7 always adds between 1 and block_size bytes
    assert len(ciphertext) % spec.block_size == 0
    assert len(plaintext) < len(ciphertext) <= len(plaintext) + spec.block_size

    dec = spec.new_decryptor(key, iv)
    assert dec.update(ciphertext) + dec.finalize() == plaintext


def test_transform_incremental_updates():
    spec = get_cipher(Algorithm.AES)
    key, iv = _key_iv(spec)
    plaintext = os.urandom(333)

    enc = spec.new_encryptor(key, iv)
    ciphertext = b"".join(enc.update(plaintext[i:i + 10]) for i in range(0, 333, 10)) + enc.finalize()

    dec = spec.new_decryptor(key, iv)
    out = b"".join(dec.update(ciphertext[i:i + 7]) for i in range(0, len(ciphertext), 7)) + dec.finalize()
    assert out == plaintext


def test_des_is_single_des():
    """DES uses one 8-byte key: same output as TripleDES keyed K1=K2=K3."""
    des = get_cipher(Algorithm.DES)
    tdes = get_cipher(Algorithm.TRIPLE_DES)
    key = os.urandom(8)
    iv = os.urandom(8)

    a = des.new_encryptor(key, iv)
    b = tdes.new_encryptor(key * 3, iv)
    assert a.update(b"12345678") + a.finalize() == b.update(b"12345678") + b.finalize()


def test_des_known_answer():
    """Classic single-DES vector; a zero IV makes the first CBC block plain ECB."""
    des = get_cipher(Algorithm.DES)
    enc = des.new_encryptor(bytes.fromhex("133457799bbcdff1"), b"\x00" * 8)
    out = enc.update(bytes.fromhex("0123456789abcdef")) + enc.finalize()
    assert out[:8] == bytes.fromhex("85e813540f0ab405")


def test_des_does_not_use_deprecated_single_key_api():
    des = get_cipher(Algorithm.DES)
    with warnings.catch_warnings():
        warnings.simplefilter("error", CryptographyDeprecationWarning)
        enc = des.new_encryptor(os.urandom(8), os.urandom(8))
        data = enc.update(b"payload") + enc.finalize()
    assert len(data) == 8


def test_wrong_key_fails_padding_validation():
    spec = get_cipher(Algorithm.AES)
    key, iv = _key_iv(spec)
    enc = spec.new_encryptor(key, iv)
    ciphertext = enc.update(b"secret payload 12345") + enc.finalize()

    # force a bad final byte so the failure is deterministic
    tampered = bytearray(ciphertext)
    tampered[-spec.block_size - 1] ^= 0xFF
    dec = spec.new_decryptor(key, iv)
    dec.update(bytes(tampered))
    with pytest.raises(DecryptionFailedError):
        dec.finalize()


def test_unaligned_ciphertext_fails():
    spec = get_cipher(Algorithm.TRIPLE_DES)
    key, iv = _key_iv(spec)
    dec = spec.new_decryptor(key, iv)
    dec.update(b"\x00" * 13)
    with pytest.raises(DecryptionFailedError):
        dec.finalize()


def test_finalize_twice_raises():
    spec = get_cipher(Algorithm.AES)
    key, iv = _key_iv(spec)
    enc = spec.new_encryptor(key, iv)
    enc.finalize()
    assert enc.finalized
    with pytest.raises(ValueError):
        enc.finalize()
    with pytest.raises(ValueError):
        enc.update(b"more")


@pytest.mark.parametrize("key_len, iv_len", [(16, 16), (32, 8), (31, 16)])
def test_wrong_key_or_iv_length(key_len, iv_len):
    spec = get_cipher(Algorithm.AES)
    with pytest.raises(ValueError):
        spec.new_encryptor(b"k" * key_len, b"i" * iv_len)
