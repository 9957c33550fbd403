"""
Tests for the crypto primitives and both backends.

Tests cover:
- PKCS#7 padding and its validation
- Known-answer vectors for AES-128-CBC and HKDF-SHA256
- Byte-identical output across the OpenSSL and pycryptodome backends
- Backend selection from the environment
"""
import os
import pytest

from secret_service import crypto
from secret_service.crypto import (
    DH_KEY_BYTES,
    DH_PRIME,
    OpenSSLBackend,
    PyCryptodomeBackend,
    bytes_to_int,
    int_to_bytes,
    pkcs7_pad,
    pkcs7_unpad,
)
from secret_service.exceptions import CryptoError

BACKENDS = [OpenSSLBackend(), PyCryptodomeBackend()]

# NIST SP 800-38A, F.2.1 CBC-AES128.Encrypt, first block
NIST_KEY = bytes.fromhex("2b7e151628aed2a6abf7158809cf4f3c")
NIST_IV = bytes.fromhex("000102030405060708090a0b0c0d0e0f")
NIST_PLAIN = bytes.fromhex("6bc1bee22e409f96e93d7e117393172a")
NIST_CIPHER = bytes.fromhex("7649abac8119b246cee98e9b12e9197d")

# RFC 5869, A.3: SHA-256 with empty salt and info
RFC5869_IKM = bytes([0x0b] * 22)
RFC5869_OKM = bytes.fromhex(
    "8da4e775a563c18f715f802a063c5a31b8a11f5c5ee1879ec3454e5f3c738d2d"
    "9d201395faa4b61a96c8"
)


class TestPadding:
    """Tests for PKCS#7 padding."""

    def test_pad_empty(self):
        """Empty input becomes one full block of padding."""
        assert pkcs7_pad(b"") == bytes([16]) * 16

    def test_pad_full_block_adds_block(self):
        """A block-aligned input still gets a whole padding block."""
        padded = pkcs7_pad(b"a" * 16)
        assert len(padded) == 32
        assert padded[16:] == bytes([16]) * 16

    def test_pad_partial(self):
        assert pkcs7_pad(b"abc") == b"abc" + bytes([13]) * 13

    def test_unpad_inverts_pad(self):
        for size in (0, 1, 15, 16, 17, 100):
            data = os.urandom(size)
            assert pkcs7_unpad(pkcs7_pad(data)) == data

    def test_unpad_rejects_bad_length(self):
        with pytest.raises(CryptoError):
            pkcs7_unpad(b"x" * 15)

    def test_unpad_rejects_empty(self):
        with pytest.raises(CryptoError):
            pkcs7_unpad(b"")

    def test_unpad_rejects_zero_pad_byte(self):
        with pytest.raises(CryptoError):
            pkcs7_unpad(b"x" * 15 + b"\x00")

    def test_unpad_rejects_oversized_pad_byte(self):
        with pytest.raises(CryptoError):
            pkcs7_unpad(b"x" * 15 + b"\x11")

    def test_unpad_rejects_inconsistent_padding(self):
        with pytest.raises(CryptoError):
            pkcs7_unpad(b"x" * 13 + b"\x01\x03\x03")


class TestIntegerSerialization:
    """Tests for fixed-width big-endian integers."""

    def test_fixed_width(self):
        assert int_to_bytes(1) == b"\x00" * (DH_KEY_BYTES - 1) + b"\x01"

    def test_prime_fits(self):
        assert len(int_to_bytes(DH_PRIME)) == DH_KEY_BYTES

    def test_roundtrip(self):
        assert bytes_to_int(int_to_bytes(DH_PRIME - 2)) == DH_PRIME - 2


@pytest.mark.parametrize("backend", BACKENDS, ids=lambda b: b.name)
class TestBackendVectors:
    """Known-answer tests run against each backend."""

    def test_aes_cbc_encrypt(self, backend):
        assert backend.encrypt_cbc(NIST_KEY, NIST_IV, NIST_PLAIN) == NIST_CIPHER

    def test_aes_cbc_decrypt(self, backend):
        assert backend.decrypt_cbc(NIST_KEY, NIST_IV, NIST_CIPHER) == NIST_PLAIN

    def test_hkdf_sha256(self, backend):
        assert backend.hkdf_sha256(RFC5869_IKM, 42) == RFC5869_OKM

    def test_hkdf_sha256_aes_key_length(self, backend):
        assert len(backend.hkdf_sha256(b"shared", 16)) == 16

    def test_modpow(self, backend):
        assert backend.modpow(2, 12345, DH_PRIME) == pow(2, 12345, DH_PRIME)


class TestCrossBackend:
    """Both backends must agree byte for byte."""

    def test_encrypt_with_one_decrypt_with_other(self):
        key, iv = os.urandom(16), os.urandom(16)
        message = pkcs7_pad(b"correct horse battery staple")
        openssl, cryptodome = BACKENDS
        assert cryptodome.decrypt_cbc(key, iv, openssl.encrypt_cbc(key, iv, message)) == message
        assert openssl.decrypt_cbc(key, iv, cryptodome.encrypt_cbc(key, iv, message)) == message

    def test_identical_ciphertext(self):
        key, iv = os.urandom(16), os.urandom(16)
        message = pkcs7_pad(os.urandom(45))
        openssl, cryptodome = BACKENDS
        assert openssl.encrypt_cbc(key, iv, message) == cryptodome.encrypt_cbc(key, iv, message)

    def test_identical_key_derivation(self):
        shared = int_to_bytes(pow(2, 98765, DH_PRIME))
        openssl, cryptodome = BACKENDS
        assert openssl.hkdf_sha256(shared, 16) == cryptodome.hkdf_sha256(shared, 16)

    def test_identical_modpow(self):
        exponent = int.from_bytes(os.urandom(64), "big")
        openssl, cryptodome = BACKENDS
        assert openssl.modpow(2, exponent, DH_PRIME) == cryptodome.modpow(2, exponent, DH_PRIME)


class TestBackendSelection:
    """Tests for SECRET_SERVICE_CRYPTO_BACKEND."""

    def test_default_is_openssl(self, monkeypatch):
        monkeypatch.delenv("SECRET_SERVICE_CRYPTO_BACKEND", raising=False)
        assert isinstance(crypto._get_backend(), OpenSSLBackend)

    def test_pycryptodome(self, monkeypatch):
        monkeypatch.setenv("SECRET_SERVICE_CRYPTO_BACKEND", "PyCryptodome")
        assert isinstance(crypto._get_backend(), PyCryptodomeBackend)

    def test_unknown_backend(self, monkeypatch):
        monkeypatch.setenv("SECRET_SERVICE_CRYPTO_BACKEND", "rot13")
        with pytest.raises(ValueError, match="Unsupported crypto backend"):
            crypto._get_backend()
