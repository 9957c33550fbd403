"""
Session Crypto Core — Diffie-Hellman group, key derivation and AES-CBC.

Implements the primitives of the ``dh-ietf1024-sha256-aes128-cbc-pkcs7``
Secret Service algorithm:
- Key exchange: 1024-bit MODP group (RFC 2409, Second Oakley Group), g = 2
- Key derivation: HKDF-SHA256(shared_secret, salt=None, info=b"") → 16 bytes
- Transport cipher: AES-128-CBC with PKCS#7 padding, random 16-byte IV

Two interchangeable backends implement the same capability; exactly one is
selected per process through SECRET_SERVICE_CRYPTO_BACKEND.

Security Note:
    Never log key material, shared secrets, IVs, plaintext or ciphertext.
"""
import os
import logging
from typing import Protocol

from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from Crypto.Cipher import AES
from Crypto.Hash import SHA256
from Crypto.Math.Numbers import Integer
from Crypto.Protocol.KDF import HKDF as CryptodomeHKDF

from .exceptions import CryptoError

logger = logging.getLogger("secret_service")

AES_BLOCK_SIZE = 16
AES_KEY_LENGTH = 16  # AES-128

# RFC 2409, section 6.2: Second Oakley Group.
DH_PRIME = int(
    'FFFFFFFFFFFFFFFFC90FDAA22168C234C4C6628B80DC1CD1'
    '29024E088A67CC74020BBEA63B139B22514A08798E3404DD'
    'EF9519B3CD3A431B302B0A6DF25F14374FE1356D6D51C245'
    'E485B576625E7EC6F44C42E9A637ED6B0BFF5CB6F406B7ED'
    'EE386BFB5A899FA5AE9F24117C4B1FE649286651ECE65381'
    'FFFFFFFFFFFFFFFF',
    16,
)
DH_GENERATOR = 2
DH_KEY_BYTES = 128  # width of the prime


class CryptoBackend(Protocol):
    """Stateless primitives the Session is written against."""

    name: str

    def encrypt_cbc(self, key: bytes, iv: bytes, padded: bytes) -> bytes:
        ...

    def decrypt_cbc(self, key: bytes, iv: bytes, ciphertext: bytes) -> bytes:
        ...

    def hkdf_sha256(self, ikm: bytes, length: int) -> bytes:
        ...

    def modpow(self, base: int, exponent: int, modulus: int) -> int:
        ...


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------

class OpenSSLBackend:
    """AES and HKDF through ``cryptography`` (OpenSSL, AES-NI when present)."""

    name = "openssl"

    def encrypt_cbc(self, key: bytes, iv: bytes, padded: bytes) -> bytes:
        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
        return encryptor.update(padded) + encryptor.finalize()

    def decrypt_cbc(self, key: bytes, iv: bytes, ciphertext: bytes) -> bytes:
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        return decryptor.update(ciphertext) + decryptor.finalize()

    def hkdf_sha256(self, ikm: bytes, length: int) -> bytes:
        hkdf = HKDF(
            algorithm=hashes.SHA256(),
            length=length,
            salt=None,
            info=b"",
        )
        return hkdf.derive(ikm)

    def modpow(self, base: int, exponent: int, modulus: int) -> int:
        return pow(base, exponent, modulus)


class PyCryptodomeBackend:
    """AES, HKDF and big-integer arithmetic through ``pycryptodome``."""

    name = "pycryptodome"

    def encrypt_cbc(self, key: bytes, iv: bytes, padded: bytes) -> bytes:
        return AES.new(key, AES.MODE_CBC, iv=iv).encrypt(padded)

    def decrypt_cbc(self, key: bytes, iv: bytes, ciphertext: bytes) -> bytes:
        return AES.new(key, AES.MODE_CBC, iv=iv).decrypt(ciphertext)

    def hkdf_sha256(self, ikm: bytes, length: int) -> bytes:
        # salt=None is a string of HashLen zero bytes, as in RFC 5869
        return CryptodomeHKDF(ikm, length, None, SHA256, context=b"")

    def modpow(self, base: int, exponent: int, modulus: int) -> int:
        result = Integer(base)
        result.inplace_pow(exponent, modulus)
        return int(result)


_BACKENDS = {
    OpenSSLBackend.name: OpenSSLBackend,
    PyCryptodomeBackend.name: PyCryptodomeBackend,
}


def _get_backend() -> CryptoBackend:
    """Return the backend named by SECRET_SERVICE_CRYPTO_BACKEND."""
    name = os.environ.get("SECRET_SERVICE_CRYPTO_BACKEND", "openssl").lower()
    try:
        backend_cls = _BACKENDS[name]
    except KeyError:
        raise ValueError(
            f"Unsupported crypto backend: {name} "
            f"(available: {sorted(_BACKENDS)})"
        ) from None
    logger.debug("Using %s crypto backend", name)
    return backend_cls()


# Resolve the backend once at module load to prevent encrypt/decrypt mismatch
# if the env var changes mid-process.
BACKEND = _get_backend()


# ---------------------------------------------------------------------------
# Padding
# ---------------------------------------------------------------------------

def pkcs7_pad(data: bytes, block_size: int = AES_BLOCK_SIZE) -> bytes:
    """Pad data to a multiple of block_size (always adds 1..block_size bytes)."""
    n = block_size - len(data) % block_size
    return data + bytes([n]) * n


def pkcs7_unpad(data: bytes, block_size: int = AES_BLOCK_SIZE) -> bytes:
    """Strip and validate PKCS#7 padding.

    Raises:
        CryptoError: If the length is not a positive multiple of block_size
            or the padding bytes are inconsistent.
    """
    if not data or len(data) % block_size:
        raise CryptoError(
            f"Padded data length {len(data)} is not a positive "
            f"multiple of {block_size}"
        )
    n = data[-1]
    if n < 1 or n > block_size or data[-n:] != bytes([n]) * n:
        raise CryptoError("Invalid PKCS#7 padding")
    return data[:-n]


# ---------------------------------------------------------------------------
# Integer serialization
# ---------------------------------------------------------------------------

def int_to_bytes(value: int, length: int = DH_KEY_BYTES) -> bytes:
    """Serialize a non-negative integer as fixed-width big-endian bytes."""
    return value.to_bytes(length, "big")


def bytes_to_int(data: bytes) -> int:
    """Parse big-endian bytes as a non-negative integer."""
    return int.from_bytes(data, "big")
