"""Value types exchanged between the client layers and the daemon."""
from enum import Enum
from dataclasses import dataclass, field
from collections.abc import Iterable, Mapping
from typing import Any, Generic, TypeVar, Union

from .defines import NO_OBJECT
from .exceptions import DuplicateAttributeError, ParseError

T = TypeVar("T")

AttributesSource = Union[Mapping[str, str], Iterable[tuple[str, str]]]


class CryptoAlgorithm(str, Enum):
    """Transport encryption negotiated with the daemon.

    The value is the algorithm name sent to ``OpenSession``.
    """
    PLAIN = "plain"
    DH = "dh-ietf1024-sha256-aes128-cbc-pkcs7"

    @classmethod
    def from_name(cls, name: Union[str, "CryptoAlgorithm"]) -> "CryptoAlgorithm":
        """Accept an enum member, its short name (``plain``/``dh``) or its wire name."""
        if isinstance(name, cls):
            return name
        lowered = str(name).lower()
        if lowered == "dh":
            return cls.DH
        try:
            return cls(lowered)
        except ValueError:
            raise ValueError(f"Unknown crypto algorithm: {name}") from None


@dataclass(frozen=True)
class EncryptedSecret:
    """A secret as it crosses the bus: D-Bus signature ``(oayays)``.

    ``value`` is ciphertext for a DH session and plaintext for a plain one;
    ``parameters`` carries the IV (empty for plain).
    """
    session: str
    parameters: bytes
    value: bytes = field(repr=False)
    content_type: str

    def to_dbus(self) -> tuple[str, bytes, bytes, str]:
        return (self.session, self.parameters, self.value, self.content_type)

    @classmethod
    def from_dbus(cls, data: Any) -> "EncryptedSecret":
        try:
            session, parameters, value, content_type = data
        except (TypeError, ValueError):
            raise ParseError("Secret struct must have four fields") from None
        if not isinstance(session, str) or not isinstance(content_type, str):
            raise ParseError("Secret struct has a malformed session or content type")
        if not isinstance(parameters, (bytes, bytearray)) or \
                not isinstance(value, (bytes, bytearray)):
            raise ParseError("Secret struct parameters and value must be byte arrays")
        return cls(session, bytes(parameters), bytes(value), content_type)


@dataclass(frozen=True)
class PromptHandle:
    """Object path of a daemon prompt; consumed once by the PromptController."""
    path: str

    @property
    def needed(self) -> bool:
        return self.path != NO_OBJECT


@dataclass
class SearchResult(Generic[T]):
    """Service-wide search result, split by lock state."""
    unlocked: list[T] = field(default_factory=list)
    locked: list[T] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.unlocked) + len(self.locked)

    def all(self) -> list[T]:
        return self.unlocked + self.locked


def make_attributes(source: AttributesSource) -> dict[str, str]:
    """Build an attribute map from a mapping or from ``(key, value)`` pairs.

    A key repeated with the same value is kept once. A key repeated with a
    different value raises :exc:`DuplicateAttributeError`; entries are
    never dropped silently.

    Raises:
        TypeError: If a key or a value is not a string.
        DuplicateAttributeError: On conflicting duplicate keys.
    """
    pairs = source.items() if isinstance(source, Mapping) else source
    attributes: dict[str, str] = {}
    for key, value in pairs:
        if not isinstance(key, str) or not isinstance(value, str):
            raise TypeError(
                f"Attribute keys and values must be str, got "
                f"{type(key).__name__}={type(value).__name__}"
            )
        if key in attributes and attributes[key] != value:
            raise DuplicateAttributeError(key, attributes[key], value)
        attributes[key] = value
    return attributes


def parse_attributes(data: Any) -> dict[str, str]:
    """Validate an ``a{ss}`` reply from the daemon."""
    if not isinstance(data, Mapping):
        raise ParseError(
            f"Expected an attribute dictionary, got {type(data).__name__}"
        )
    for key, value in data.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise ParseError("Attribute dictionary must map strings to strings")
    return dict(data)


def parse_object_paths(data: Any) -> list[str]:
    """Validate an ``ao`` reply from the daemon."""
    if not isinstance(data, (list, tuple)) or \
            not all(isinstance(path, str) for path in data):
        raise ParseError("Expected an array of object paths")
    return list(data)


def parse_object_path(data: Any) -> str:
    if not isinstance(data, str) or not data.startswith("/"):
        raise ParseError(f"Expected an object path, got {data!r}")
    return data
