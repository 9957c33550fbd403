"""Errors raised by the Secret Service client.

Every exception derives from :exc:`SecretServiceException`, so callers can
catch the whole family at once, or branch on the expected outcomes
(:exc:`NoResultError`, :exc:`LockedError`, :exc:`PromptDismissedError`)
without matching on messages.
"""
from typing import Optional


class SecretServiceException(Exception):
    """Base class of all client errors."""


class TransportError(SecretServiceException):
    """A bus call failed.

    The failure is not interpreted; ``name`` carries the D-Bus error name
    when the daemon replied with an error, and the original exception is
    chained as ``__cause__``.
    """

    def __init__(self, message: str, name: Optional[str] = None):
        super().__init__(message)
        self.name = name


class ServiceUnavailable(TransportError):
    """No message bus, or no daemon owning the Secret Service name."""


class CryptoError(SecretServiceException):
    """Session negotiation or a cipher operation failed.

    Always fatal to the Session it came from: open a new one.
    """


class ParseError(SecretServiceException):
    """A daemon reply did not have the expected shape."""


class NoResultError(SecretServiceException):
    """A lookup found nothing, or a deleted object handle was reused."""


class LockedError(SecretServiceException):
    """The object is locked; unlock it before accessing its secrets."""


class PromptDismissedError(SecretServiceException):
    """The user dismissed a prompt."""


class PromptBusyError(SecretServiceException):
    """Another prompt is already being resolved by this controller."""


class DuplicateAttributeError(SecretServiceException, ValueError):
    """The same attribute key was given twice with different values."""

    def __init__(self, key: str, first: str, second: str):
        super().__init__(
            f"Attribute {key!r} given twice with different values"
        )
        self.key = key
        self.first = first
        self.second = second
