"""
Bus Transport — the asynchronous RPC capability the client is built on.

The client only needs two things from the message bus: "call a method and
await its reply" and "await signals emitted on a path". :class:`Transport`
states that contract; :class:`JeepneyTransport` fulfils it over a
``jeepney`` asyncio router. Entity handles talk to the bus through a
:class:`Proxy` built once per object path.
"""
import asyncio
import logging
import contextlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from collections.abc import AsyncIterator
from typing import Any, Optional

from jeepney.bus_messages import MatchRule, message_bus
from jeepney.io.asyncio import open_dbus_router
from jeepney.io.common import RouterClosed
from jeepney.low_level import HeaderFields, MessageType
from jeepney.wrappers import DBusAddress, DBusErrorResponse, new_method_call

from .defines import (
    DBUS_INTERFACE_PROPERTIES,
    DBUS_SERVICE_UNKNOWN,
    SS_DBUS_NAME,
    SS_ERROR_IS_LOCKED,
    SS_ERROR_NO_SESSION,
    SS_ERROR_NO_SUCH_OBJECT,
)
from .exceptions import (
    CryptoError,
    LockedError,
    NoResultError,
    ParseError,
    ServiceUnavailable,
    TransportError,
)

logger = logging.getLogger("secret_service")


@dataclass(frozen=True)
class Signal:
    """A signal as delivered to a subscriber."""
    path: str
    interface: str
    member: str
    body: tuple


class Transport(ABC):
    """Asynchronous method-call and signal capability of one bus connection.

    Implementations must allow many calls in flight at once and several
    concurrent subscriptions.
    """

    destination: str = SS_DBUS_NAME

    @abstractmethod
    async def call(
        self,
        path: str,
        interface: str,
        method: str,
        signature: Optional[str] = None,
        body: tuple = (),
    ) -> tuple:
        """Call ``method`` on ``path`` and return the reply body.

        Raises:
            TransportError: If the call failed or the daemon replied with an error.
        """

    @abstractmethod
    def subscribe(
        self, path: str, interface: str, member: str,
    ) -> contextlib.AbstractAsyncContextManager[AsyncIterator[Signal]]:
        """Subscribe to ``interface.member`` signals emitted on ``path``.

        Usage::

            async with transport.subscribe(path, iface, "Completed") as signals:
                async for signal in signals:
                    ...

        The subscription is removed when the context exits, including on
        cancellation.
        """

    @abstractmethod
    async def close(self) -> None:
        """Close the underlying connection."""

    async def get_property(self, path: str, interface: str, name: str) -> Any:
        body = await self.call(
            path, DBUS_INTERFACE_PROPERTIES, "Get", "ss", (interface, name),
        )
        try:
            (_signature, value), = body
        except (TypeError, ValueError):
            raise ParseError(
                f"Malformed reply reading property {interface}.{name}"
            ) from None
        return value

    async def set_property(
        self, path: str, interface: str, name: str, signature: str, value: Any,
    ) -> None:
        await self.call(
            path, DBUS_INTERFACE_PROPERTIES, "Set", "ssv",
            (interface, name, (signature, value)),
        )


def translate_error(err: TransportError) -> Exception:
    """Map protocol-level D-Bus error names onto the client taxonomy.

    Anything else is returned unchanged.
    """
    if err.name == SS_ERROR_IS_LOCKED:
        return LockedError(str(err))
    if err.name == SS_ERROR_NO_SUCH_OBJECT:
        return NoResultError(str(err))
    if err.name == SS_ERROR_NO_SESSION:
        return CryptoError(f"Session no longer known to the daemon: {err}")
    return err


@contextlib.contextmanager
def _protocol_errors():
    try:
        yield
    except TransportError as err:
        translated = translate_error(err)
        if translated is err:
            raise
        raise translated from err


class Proxy:
    """One daemon object on one interface, bound to a shared transport."""

    def __init__(self, transport: Transport, path: str, interface: str):
        self._transport = transport
        self.path = path
        self.interface = interface

    def __repr__(self) -> str:
        return f"<Proxy {self.interface} at {self.path}>"

    async def call(
        self, method: str, signature: Optional[str] = None, body: tuple = (),
    ) -> tuple:
        with _protocol_errors():
            return await self._transport.call(
                self.path, self.interface, method, signature, body,
            )

    async def get(self, name: str) -> Any:
        with _protocol_errors():
            return await self._transport.get_property(
                self.path, self.interface, name,
            )

    async def set(self, name: str, signature: str, value: Any) -> None:
        with _protocol_errors():
            await self._transport.set_property(
                self.path, self.interface, name, signature, value,
            )


# ---------------------------------------------------------------------------
# jeepney implementation
# ---------------------------------------------------------------------------

class _SignalStream:
    """Async iterator over the signal queue of one jeepney filter."""

    def __init__(self, queue: asyncio.Queue):
        self._queue = queue

    def __aiter__(self) -> "_SignalStream":
        return self

    async def __anext__(self) -> Signal:
        msg = await self._queue.get()
        fields = msg.header.fields
        return Signal(
            path=fields.get(HeaderFields.path, ""),
            interface=fields.get(HeaderFields.interface, ""),
            member=fields.get(HeaderFields.member, ""),
            body=tuple(msg.body),
        )


class JeepneyTransport(Transport):
    """Transport over a jeepney asyncio ``DBusRouter``."""

    def __init__(self, router: Any, stack: contextlib.AsyncExitStack,
                 destination: str = SS_DBUS_NAME):
        self._router = router
        self._stack = stack
        self.destination = destination

    @classmethod
    async def open(cls, bus: str = "SESSION",
                   destination: str = SS_DBUS_NAME) -> "JeepneyTransport":
        """Connect to ``bus`` (``SESSION``, ``SYSTEM`` or an address).

        Raises:
            ServiceUnavailable: If no bus can be reached.
        """
        stack = contextlib.AsyncExitStack()
        try:
            router = await stack.enter_async_context(open_dbus_router(bus=bus))
        except (OSError, KeyError, ValueError) as err:
            await stack.aclose()
            raise ServiceUnavailable(
                f"Cannot connect to the {bus} message bus: {err}"
            ) from err
        logger.debug("Connected to the %s message bus", bus)
        return cls(router, stack, destination)

    async def _send(self, msg) -> tuple:
        try:
            reply = await self._router.send_and_get_reply(msg)
        except (OSError, RouterClosed) as err:
            raise TransportError(f"Message bus connection failed: {err}") from err
        if reply.header.message_type == MessageType.error:
            err = DBusErrorResponse(reply)
            cls = ServiceUnavailable if err.name == DBUS_SERVICE_UNKNOWN \
                else TransportError
            raise cls(str(err), name=err.name) from err
        return tuple(reply.body)

    async def call(
        self,
        path: str,
        interface: str,
        method: str,
        signature: Optional[str] = None,
        body: tuple = (),
    ) -> tuple:
        address = DBusAddress(path, bus_name=self.destination, interface=interface)
        return await self._send(new_method_call(address, method, signature, body))

    @contextlib.asynccontextmanager
    async def subscribe(self, path: str, interface: str, member: str):
        rule = MatchRule(
            type="signal", interface=interface, member=member, path=path,
        )
        await self._send(message_bus.AddMatch(rule))
        logger.debug("Subscribed to %s.%s on %s", interface, member, path)
        try:
            with self._router.filter(rule, queue=asyncio.Queue()) as queue:
                yield _SignalStream(queue)
        finally:
            try:
                await self._send(message_bus.RemoveMatch(rule))
            except TransportError as err:
                logger.warning(
                    "Could not remove match rule for %s: %s", path, err,
                )

    async def close(self) -> None:
        await self._stack.aclose()
        logger.debug("Message bus connection closed")
