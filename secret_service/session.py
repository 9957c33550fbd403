"""
Secret Service Session — negotiated transport encryption with the daemon.

``Session.open`` runs the ``OpenSession`` handshake:

- ``plain``: no key exchange, secrets travel as cleartext over the bus.
- ``dh-ietf1024-sha256-aes128-cbc-pkcs7``: Diffie-Hellman over the RFC 2409
  1024-bit MODP group, HKDF-SHA256 of the 128-byte shared secret gives the
  AES-128 key, and every secret is AES-CBC encrypted under a fresh IV.

Security Note:
    The derived key never leaves this module: the only I/O is
    ``encrypt(plaintext) -> (ciphertext, iv)`` and
    ``decrypt(ciphertext, iv) -> plaintext``. Never log key material.
"""
import os
import secrets
import logging
from typing import Optional, Union

from .crypto import (
    AES_BLOCK_SIZE,
    AES_KEY_LENGTH,
    BACKEND,
    DH_GENERATOR,
    DH_PRIME,
    bytes_to_int,
    int_to_bytes,
    pkcs7_pad,
    pkcs7_unpad,
)
from .defines import SS_INTERFACE_SERVICE, SS_INTERFACE_SESSION, SS_PATH
from .exceptions import CryptoError, ParseError, SecretServiceException
from .models import CryptoAlgorithm, EncryptedSecret, parse_object_path
from .transport import Proxy, Transport

logger = logging.getLogger("secret_service")


# ---------------------------------------------------------------------------
# Key exchange
# ---------------------------------------------------------------------------

def generate_keypair() -> tuple[int, int]:
    """Return ``(private, public)`` for the MODP group.

    The private exponent is uniform in ``[2, p - 2]``.
    """
    private = secrets.randbelow(DH_PRIME - 3) + 2
    public = BACKEND.modpow(DH_GENERATOR, private, DH_PRIME)
    return private, public


def derive_key(private: int, peer_public: bytes) -> bytes:
    """Derive the AES-128 session key from the daemon's public value.

    Raises:
        CryptoError: If the peer value is out of range or derivation fails.
    """
    y = bytes_to_int(peer_public)
    if not 2 <= y <= DH_PRIME - 2:
        raise CryptoError("Daemon public key is out of range")
    shared = BACKEND.modpow(y, private, DH_PRIME)
    key = BACKEND.hkdf_sha256(int_to_bytes(shared), AES_KEY_LENGTH)
    if len(key) != AES_KEY_LENGTH:
        raise CryptoError(f"Key derivation produced {len(key)} bytes")
    return key


class Session:
    """One negotiated encryption context, identified by a daemon object path.

    Built through :meth:`open`; the key is fixed for the lifetime of the
    instance and there is no way to copy or read it.
    """

    def __init__(self, transport: Transport, handle: str,
                 algorithm: CryptoAlgorithm, key: Optional[bytes] = None):
        if (algorithm is CryptoAlgorithm.DH) != (key is not None):
            raise CryptoError("A DH session needs a key and a plain one must not have one")
        self._proxy = Proxy(transport, handle, SS_INTERFACE_SESSION)
        self._handle = handle
        self._algorithm = algorithm
        self.__key = key
        self._broken = False
        self._closed = False

    def __repr__(self) -> str:
        return f"<Session {self._algorithm.name} at {self._handle}>"

    @classmethod
    async def open(
        cls,
        transport: Transport,
        algorithm: Union[CryptoAlgorithm, str] = CryptoAlgorithm.DH,
    ) -> "Session":
        """Negotiate a session with the daemon.

        Raises:
            CryptoError: If the handshake reply is malformed or the key
                cannot be derived.
            TransportError: If the daemon refused the call.
        """
        algorithm = CryptoAlgorithm.from_name(algorithm)
        service = Proxy(transport, SS_PATH, SS_INTERFACE_SERVICE)
        if algorithm is CryptoAlgorithm.PLAIN:
            _output, handle = await cls._open_session(service, algorithm, ("s", ""))
            logger.debug("Opened plain session %s", handle)
            return cls(transport, handle, algorithm)

        private, public = generate_keypair()
        output, handle = await cls._open_session(
            service, algorithm, ("ay", int_to_bytes(public)),
        )
        try:
            signature, peer_public = output
            if signature != "ay" or not isinstance(peer_public, (bytes, bytearray)):
                raise CryptoError(
                    f"Expected a byte array from OpenSession, got {signature!r}"
                )
            key = derive_key(private, bytes(peer_public))
        except (TypeError, ValueError) as err:
            await cls._abandon(transport, handle)
            raise CryptoError(f"Malformed OpenSession output: {err}") from err
        except CryptoError:
            await cls._abandon(transport, handle)
            raise
        logger.debug("Opened DH session %s", handle)
        return cls(transport, handle, algorithm, key)

    @staticmethod
    async def _open_session(service: Proxy, algorithm: CryptoAlgorithm,
                            payload: tuple) -> tuple:
        reply = await service.call("OpenSession", "sv", (algorithm.value, payload))
        try:
            output, handle = reply
            return output, parse_object_path(handle)
        except (TypeError, ValueError, ParseError) as err:
            raise CryptoError(f"Malformed OpenSession reply: {err}") from err

    @staticmethod
    async def _abandon(transport: Transport, handle: str) -> None:
        try:
            await Proxy(transport, handle, SS_INTERFACE_SESSION).call("Close")
        except SecretServiceException as err:
            logger.warning("Could not close failed session %s: %s", handle, err)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def handle(self) -> str:
        return self._handle

    @property
    def algorithm(self) -> CryptoAlgorithm:
        return self._algorithm

    @property
    def encrypted(self) -> bool:
        return self._algorithm is CryptoAlgorithm.DH

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Cipher operations
    # ------------------------------------------------------------------

    def _check_usable(self) -> None:
        if self._closed:
            raise CryptoError(f"Session {self._handle} is closed")
        if self._broken:
            raise CryptoError(
                f"Session {self._handle} failed earlier and must be re-opened"
            )

    def encrypt(self, plaintext: bytes) -> tuple[bytes, bytes]:
        """Return ``(ciphertext, iv)``; identity with an empty IV for plain."""
        self._check_usable()
        if not self.encrypted:
            return bytes(plaintext), b""
        iv = os.urandom(AES_BLOCK_SIZE)
        try:
            ciphertext = BACKEND.encrypt_cbc(self.__key, iv, pkcs7_pad(plaintext))
        except ValueError as err:
            self._broken = True
            raise CryptoError(f"Encryption failed: {err}") from err
        return ciphertext, iv

    def decrypt(self, ciphertext: bytes, iv: bytes) -> bytes:
        """Inverse of :meth:`encrypt`.

        Raises:
            CryptoError: On a bad IV, a length that is not a multiple of the
                block size, or invalid padding.
        """
        self._check_usable()
        if not self.encrypted:
            return bytes(ciphertext)
        try:
            if len(iv) != AES_BLOCK_SIZE:
                raise CryptoError(f"IV must be {AES_BLOCK_SIZE} bytes, got {len(iv)}")
            if not ciphertext or len(ciphertext) % AES_BLOCK_SIZE:
                raise CryptoError(
                    f"Ciphertext length {len(ciphertext)} is not a positive "
                    f"multiple of {AES_BLOCK_SIZE}"
                )
            padded = BACKEND.decrypt_cbc(self.__key, bytes(iv), bytes(ciphertext))
            return pkcs7_unpad(padded)
        except CryptoError:
            self._broken = True
            raise
        except ValueError as err:
            self._broken = True
            raise CryptoError(f"Decryption failed: {err}") from err

    def format_secret(self, plaintext: bytes,
                      content_type: str = "text/plain") -> EncryptedSecret:
        """Encrypt ``plaintext`` and stamp it with this session's handle."""
        value, parameters = self.encrypt(plaintext)
        return EncryptedSecret(self._handle, parameters, value, content_type)

    def open_secret(self, secret: EncryptedSecret) -> bytes:
        """Decrypt a secret the daemon returned for this session."""
        if secret.session != self._handle:
            raise CryptoError(
                f"Secret was encoded for session {secret.session}, "
                f"not {self._handle}"
            )
        return self.decrypt(secret.value, secret.parameters)

    async def close(self) -> None:
        """Close the daemon-side session; further cipher calls fail."""
        if self._closed:
            return
        self._closed = True
        self.__key = None
        await self._proxy.call("Close")
        logger.debug("Closed session %s", self._handle)
