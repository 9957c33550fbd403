"""Secret Service — asyncio client for the FreeDesktop Secret Service API.

Security Note (Threat Model):
    With the ``dh`` algorithm secrets cross the message bus encrypted under
    a per-session AES key negotiated by Diffie-Hellman. With ``plain`` they
    cross it as cleartext, protected only by the bus's own permissions.
    Decrypted secrets live in process memory while in use.
"""

from .version import __version__
from .config import ClientConfig
from .exceptions import (
    SecretServiceException,
    TransportError,
    ServiceUnavailable,
    CryptoError,
    ParseError,
    NoResultError,
    LockedError,
    PromptDismissedError,
    PromptBusyError,
    DuplicateAttributeError,
)
from .models import (
    CryptoAlgorithm,
    EncryptedSecret,
    PromptHandle,
    SearchResult,
    make_attributes,
)
from .transport import Transport, JeepneyTransport, Signal
from .session import Session
from .prompt import PromptController, PromptState
from .service import SecretService
from .collection import Collection
from .item import Item

__all__ = [
    "__version__",
    "ClientConfig",
    "SecretServiceException",
    "TransportError",
    "ServiceUnavailable",
    "CryptoError",
    "ParseError",
    "NoResultError",
    "LockedError",
    "PromptDismissedError",
    "PromptBusyError",
    "DuplicateAttributeError",
    "CryptoAlgorithm",
    "EncryptedSecret",
    "PromptHandle",
    "SearchResult",
    "make_attributes",
    "Transport",
    "JeepneyTransport",
    "Signal",
    "Session",
    "PromptController",
    "PromptState",
    "SecretService",
    "Collection",
    "Item",
]
