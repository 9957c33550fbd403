"""
SecretService — entry point of the client.

Connecting opens (or takes) one bus transport and negotiates exactly one
:class:`~secret_service.session.Session`; every collection and item
handle handed out afterwards shares both.

Usage::

    async with await SecretService.connect(CryptoAlgorithm.DH) as service:
        collection = await service.get_default_collection()
        item = await collection.create_item(
            "token", {"app": "demo"}, b"s3cret", replace=True,
        )
        result = await service.search_items({"app": "demo"})
"""
import logging
from collections.abc import Iterable
from typing import Optional, Union

from .collection import Collection
from .config import ClientConfig
from .defines import (
    DEFAULT_ALIAS,
    NO_OBJECT,
    SESSION_ALIAS,
    SS_COLLECTION_LABEL,
    SS_INTERFACE_SERVICE,
    SS_PATH,
)
from .exceptions import NoResultError, ParseError
from .item import Item
from .models import (
    AttributesSource,
    CryptoAlgorithm,
    PromptHandle,
    SearchResult,
    make_attributes,
    parse_object_path,
    parse_object_paths,
)
from .objects import SecretObject, resolve_created
from .prompt import PromptController
from .session import Session
from .transport import JeepneyTransport, Proxy, Transport

logger = logging.getLogger("secret_service")


class SecretService:
    """The daemon's service object and the factory of collection handles."""

    def __init__(self, transport: Transport, session: Session,
                 prompts: PromptController, owns_transport: bool = False):
        self._transport = transport
        self._session = session
        self._prompts = prompts
        self._owns_transport = owns_transport
        self._proxy = Proxy(transport, SS_PATH, SS_INTERFACE_SERVICE)

    def __repr__(self) -> str:
        return f"<SecretService session={self._session!r}>"

    @classmethod
    async def connect(
        cls,
        algorithm: Union[CryptoAlgorithm, str, None] = None,
        *,
        config: Optional[ClientConfig] = None,
        transport: Optional[Transport] = None,
    ) -> "SecretService":
        """Connect to the daemon and negotiate a session.

        Args:
            algorithm: Overrides ``config.algorithm`` when given.
            config: Client settings; read from the environment if omitted.
            transport: An existing transport to use instead of opening a
                bus connection. It is not closed by :meth:`close`.

        Raises:
            ServiceUnavailable: If the bus or the daemon cannot be reached.
            CryptoError: If session negotiation fails.
        """
        if config is None:
            config = ClientConfig.from_env()
        algorithm = CryptoAlgorithm.from_name(algorithm or config.algorithm)
        owns_transport = transport is None
        if transport is None:
            transport = await JeepneyTransport.open(config.bus)
        try:
            session = await Session.open(transport, algorithm)
        except BaseException:
            if owns_transport:
                await transport.close()
            raise
        prompts = PromptController(
            transport, window_id=config.window_id, policy=config.prompt_policy,
        )
        return cls(transport, session, prompts, owns_transport)

    async def __aenter__(self) -> "SecretService":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the session, then the bus connection if we opened it."""
        try:
            await self._session.close()
        finally:
            if self._owns_transport:
                await self._transport.close()

    # ------------------------------------------------------------------
    # Read-only accessors for the entity layer
    # ------------------------------------------------------------------

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def session(self) -> Session:
        return self._session

    @property
    def prompts(self) -> PromptController:
        return self._prompts

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    async def get_all_collections(self) -> list[Collection]:
        paths = parse_object_paths(await self._proxy.get("Collections"))
        return [Collection(self, path) for path in paths]

    async def get_collection_by_alias(self, alias: str) -> Collection:
        """Resolve an alias such as ``default``.

        Raises:
            NoResultError: If no collection has this alias.
        """
        reply = await self._proxy.call("ReadAlias", "s", (alias,))
        if len(reply) != 1:
            raise ParseError(f"ReadAlias returned {len(reply)} values")
        path = parse_object_path(reply[0])
        if path == NO_OBJECT:
            raise NoResultError(f"No collection with alias {alias!r}")
        return Collection(self, path)

    async def get_default_collection(self) -> Collection:
        return await self.get_collection_by_alias(DEFAULT_ALIAS)

    async def get_any_collection(self) -> Collection:
        """The ``default`` collection, else ``session``, else the first one."""
        for alias in (DEFAULT_ALIAS, SESSION_ALIAS):
            try:
                return await self.get_collection_by_alias(alias)
            except NoResultError:
                logger.debug("No collection with alias %s", alias)
        collections = await self.get_all_collections()
        if not collections:
            raise NoResultError("No collections found")
        return collections[0]

    async def create_collection(self, label: str, alias: str = "") -> Collection:
        """Create a collection, resolving the daemon's prompt if it asks.

        Raises:
            PromptDismissedError: If the user refused the creation prompt.
        """
        properties = {SS_COLLECTION_LABEL: ("s", label)}
        reply = await self._proxy.call(
            "CreateCollection", "a{sv}s", (properties, alias),
        )
        try:
            created, prompt = reply
        except ValueError:
            raise ParseError(f"CreateCollection returned {len(reply)} values") from None
        path = await resolve_created(self, created, prompt)
        logger.info("Created collection %r at %s", label, path)
        return Collection(self, path)

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    async def search_items(self, attributes: AttributesSource) -> SearchResult[Item]:
        """Search every collection for items carrying all given attributes."""
        reply = await self._proxy.call(
            "SearchItems", "a{ss}", (make_attributes(attributes),),
        )
        try:
            unlocked, locked = reply
        except ValueError:
            raise ParseError(f"SearchItems returned {len(reply)} values") from None
        return SearchResult(
            unlocked=[Item(self, path) for path in parse_object_paths(unlocked)],
            locked=[Item(self, path) for path in parse_object_paths(locked)],
        )

    async def unlock_all(self, objects: Iterable[SecretObject]) -> None:
        """Unlock several items or collections with at most one prompt."""
        await self.unlock_paths([obj.path for obj in objects])

    async def lock_all(self, objects: Iterable[SecretObject]) -> None:
        await self.lock_paths([obj.path for obj in objects])

    async def unlock_paths(self, paths: list[str]) -> None:
        await self._lock_or_unlock("Unlock", paths)

    async def lock_paths(self, paths: list[str]) -> None:
        await self._lock_or_unlock("Lock", paths)

    async def _lock_or_unlock(self, method: str, paths: list[str]) -> None:
        if not paths:
            return
        reply = await self._proxy.call(method, "ao", (paths,))
        try:
            _done, prompt = reply
        except ValueError:
            raise ParseError(f"{method} returned {len(reply)} values") from None
        prompt = PromptHandle(parse_object_path(prompt))
        if prompt.needed:
            await self._prompts.resolve(prompt)
        logger.debug("%s of %d object(s) done", method, len(paths))
