"""
Blocking API — synchronous access to the Secret Service.

Mirrors :class:`~secret_service.service.SecretService`,
:class:`~secret_service.collection.Collection` and
:class:`~secret_service.item.Item` for code that has no event loop.
Each blocking service owns a private event loop and runs every request to
completion on it; the collection and item handles it hands out share that
loop.

Calling into this module from a coroutine would stall the running loop, so
it raises :exc:`RuntimeError` instead. Use the asyncio API there.

Usage::

    from secret_service.blocking import SecretService

    with SecretService.connect("dh") as service:
        collection = service.get_default_collection()
        collection.create_item("token", {"app": "demo"}, b"s3cret", replace=True)
        item, = service.search_items({"app": "demo"}).unlocked
        secret = item.get_secret()
"""
import asyncio
import logging
from collections.abc import Coroutine, Iterable
from typing import Any, Optional, TypeVar, Union

from . import collection as _collection
from . import item as _item
from . import service as _service
from .config import ClientConfig
from .models import AttributesSource, CryptoAlgorithm, SearchResult
from .objects import SecretObject
from .session import Session
from .transport import Transport

logger = logging.getLogger("secret_service")

T = TypeVar("T")


class _LoopRunner:
    """A persistent event loop driven from synchronous code."""

    def __init__(self):
        self._loop = asyncio.new_event_loop()

    @property
    def closed(self) -> bool:
        return self._loop.is_closed()

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            coro.close()
            raise RuntimeError(
                "The blocking API cannot be used from a running event loop"
            )
        if self._loop.is_closed():
            coro.close()
            raise RuntimeError("This blocking Secret Service client is closed")
        return self._loop.run_until_complete(coro)

    def close(self) -> None:
        if self._loop.is_closed():
            return
        try:
            # background work such as prompt dismissal gets to finish
            pending = asyncio.all_tasks(self._loop)
            if pending:
                self._loop.run_until_complete(
                    asyncio.gather(*pending, return_exceptions=True)
                )
            self._loop.run_until_complete(self._loop.shutdown_asyncgens())
        finally:
            self._loop.close()
            logger.debug("Blocking client event loop closed")


class _BlockingObject:
    """Synchronous view of a :class:`SecretObject`."""

    def __init__(self, runner: _LoopRunner, obj: SecretObject):
        self._runner = runner
        self._obj = obj

    def __repr__(self) -> str:
        return f"<{type(self).__name__} (blocking) at {self._obj.path}>"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, _BlockingObject):
            return NotImplemented
        return self._obj == other._obj

    def __hash__(self) -> int:
        return hash(self._obj)

    @property
    def path(self) -> str:
        return self._obj.path

    def is_locked(self) -> bool:
        return self._runner.run(self._obj.is_locked())

    def ensure_unlocked(self) -> None:
        self._runner.run(self._obj.ensure_unlocked())

    def unlock(self) -> None:
        self._runner.run(self._obj.unlock())

    def lock(self) -> None:
        self._runner.run(self._obj.lock())

    def get_label(self) -> str:
        return self._runner.run(self._obj.get_label())

    def set_label(self, label: str) -> None:
        self._runner.run(self._obj.set_label(label))

    def get_created(self) -> int:
        return self._runner.run(self._obj.get_created())

    def get_modified(self) -> int:
        return self._runner.run(self._obj.get_modified())

    def delete(self) -> None:
        self._runner.run(self._obj.delete())


class Item(_BlockingObject):
    """Blocking counterpart of :class:`secret_service.item.Item`."""

    _obj: _item.Item

    def get_attributes(self) -> dict[str, str]:
        return self._runner.run(self._obj.get_attributes())

    def set_attributes(self, attributes: AttributesSource) -> None:
        self._runner.run(self._obj.set_attributes(attributes))

    def get_secret(self) -> bytes:
        return self._runner.run(self._obj.get_secret())

    def get_secret_content_type(self) -> str:
        return self._runner.run(self._obj.get_secret_content_type())

    def set_secret(self, secret: bytes, content_type: str = "text/plain") -> None:
        self._runner.run(self._obj.set_secret(secret, content_type))


class Collection(_BlockingObject):
    """Blocking counterpart of :class:`secret_service.collection.Collection`."""

    _obj: _collection.Collection

    def _wrap(self, items: list[_item.Item]) -> list[Item]:
        return [Item(self._runner, item) for item in items]

    def get_all_items(self) -> list[Item]:
        return self._wrap(self._runner.run(self._obj.get_all_items()))

    def search_items(self, attributes: AttributesSource) -> list[Item]:
        return self._wrap(self._runner.run(self._obj.search_items(attributes)))

    def create_item(
        self,
        label: str,
        attributes: AttributesSource,
        secret: bytes,
        replace: bool = False,
        content_type: str = "text/plain",
    ) -> Item:
        item = self._runner.run(self._obj.create_item(
            label, attributes, secret, replace=replace, content_type=content_type,
        ))
        return Item(self._runner, item)


class SecretService:
    """Blocking counterpart of :class:`secret_service.service.SecretService`.

    Prompts block the calling thread until the user answers them.
    """

    def __init__(self, runner: _LoopRunner, service: _service.SecretService):
        self._runner = runner
        self._service = service

    def __repr__(self) -> str:
        return f"<SecretService (blocking) session={self._service.session!r}>"

    @classmethod
    def connect(
        cls,
        algorithm: Union[CryptoAlgorithm, str, None] = None,
        *,
        config: Optional[ClientConfig] = None,
        transport: Optional[Transport] = None,
    ) -> "SecretService":
        """Connect and negotiate a session, blocking until done.

        Takes the same arguments as the asyncio ``SecretService.connect``.
        A ``transport`` given here must not be bound to another event loop.

        Raises:
            ServiceUnavailable: If the bus or the daemon cannot be reached.
            CryptoError: If session negotiation fails.
        """
        runner = _LoopRunner()
        try:
            service = runner.run(_service.SecretService.connect(
                algorithm, config=config, transport=transport,
            ))
        except BaseException:
            runner.close()
            raise
        return cls(runner, service)

    def __enter__(self) -> "SecretService":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        """Close the session and connection, then the private event loop."""
        if self._runner.closed:
            return
        try:
            self._runner.run(self._service.close())
        finally:
            self._runner.close()

    @property
    def session(self) -> Session:
        return self._service.session

    def _collection(self, collection: _collection.Collection) -> Collection:
        return Collection(self._runner, collection)

    def get_all_collections(self) -> list[Collection]:
        return [
            self._collection(c)
            for c in self._runner.run(self._service.get_all_collections())
        ]

    def get_collection_by_alias(self, alias: str) -> Collection:
        return self._collection(
            self._runner.run(self._service.get_collection_by_alias(alias))
        )

    def get_default_collection(self) -> Collection:
        return self._collection(
            self._runner.run(self._service.get_default_collection())
        )

    def get_any_collection(self) -> Collection:
        return self._collection(
            self._runner.run(self._service.get_any_collection())
        )

    def create_collection(self, label: str, alias: str = "") -> Collection:
        return self._collection(
            self._runner.run(self._service.create_collection(label, alias))
        )

    def search_items(self, attributes: AttributesSource) -> SearchResult[Item]:
        result = self._runner.run(self._service.search_items(attributes))
        return SearchResult(
            unlocked=[Item(self._runner, item) for item in result.unlocked],
            locked=[Item(self._runner, item) for item in result.locked],
        )

    def unlock_all(self, objects: Iterable[_BlockingObject]) -> None:
        self._runner.run(self._service.unlock_all([obj._obj for obj in objects]))

    def lock_all(self, objects: Iterable[_BlockingObject]) -> None:
        self._runner.run(self._service.lock_all([obj._obj for obj in objects]))
