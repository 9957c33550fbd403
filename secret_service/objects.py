"""Behaviour shared by the Collection and Item handles."""
import logging
from typing import TYPE_CHECKING, Any

from .defines import NO_OBJECT
from .exceptions import LockedError, NoResultError, ParseError
from .models import PromptHandle, parse_object_path
from .transport import Proxy

if TYPE_CHECKING:
    from .service import SecretService

logger = logging.getLogger("secret_service")


class SecretObject:
    """A daemon object addressed by its own path.

    Holds a shared reference to the service (and through it the transport,
    session and prompt controller) and one cached proxy for its interface.
    Once :meth:`delete` succeeds the handle refuses further use.
    """

    interface: str = ""

    def __init__(self, service: "SecretService", path: str):
        self._service = service
        self._path = path
        self._proxy = Proxy(service.transport, path, self.interface)
        self._deleted = False

    def __repr__(self) -> str:
        return f"<{type(self).__name__} at {self._path}>"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SecretObject):
            return NotImplemented
        return type(self) is type(other) and self._path == other._path

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._path))

    @property
    def path(self) -> str:
        return self._path

    @property
    def proxy(self) -> Proxy:
        self._check_alive()
        return self._proxy

    def _check_alive(self) -> None:
        if self._deleted:
            raise NoResultError(f"{type(self).__name__} {self._path} was deleted")

    async def _get(self, name: str, kind: type) -> Any:
        value = await self.proxy.get(name)
        if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
            raise ParseError(
                f"Property {name} of {self._path} has unexpected type "
                f"{type(value).__name__}"
            )
        return value

    async def is_locked(self) -> bool:
        return await self._get("Locked", bool)

    async def ensure_unlocked(self) -> None:
        """Raise :exc:`LockedError` if the object is locked."""
        if await self.is_locked():
            raise LockedError(f"{type(self).__name__} {self._path} is locked")

    async def unlock(self) -> None:
        """Unlock the object, showing a prompt if the daemon asks for one."""
        self._check_alive()
        await self._service.unlock_paths([self._path])

    async def lock(self) -> None:
        self._check_alive()
        await self._service.lock_paths([self._path])

    async def get_label(self) -> str:
        return await self._get("Label", str)

    async def set_label(self, label: str) -> None:
        await self.proxy.set("Label", "s", label)

    async def get_created(self) -> int:
        """Creation time as a UNIX timestamp."""
        return await self._get("Created", int)

    async def get_modified(self) -> int:
        """Last modification time as a UNIX timestamp."""
        return await self._get("Modified", int)

    async def delete(self) -> None:
        """Delete the daemon object; this handle is unusable afterwards.

        Raises:
            LockedError: If the object is locked.
            PromptDismissedError: If the confirmation prompt was dismissed.
        """
        await self.ensure_unlocked()
        reply = await self.proxy.call("Delete")
        try:
            prompt = PromptHandle(parse_object_path(reply[0]))
        except IndexError:
            raise ParseError(f"Delete of {self._path} returned nothing") from None
        if prompt.needed:
            await self._service.prompts.resolve(prompt)
        self._deleted = True
        logger.info("Deleted %s %s", type(self).__name__.lower(), self._path)


async def resolve_created(service: "SecretService", created: str,
                          prompt: str) -> str:
    """Path of an object from a Create* reply, prompting when it is ``/``."""
    created = parse_object_path(created)
    if created != NO_OBJECT:
        return created
    result = await service.prompts.resolve(PromptHandle(parse_object_path(prompt)))
    return parse_object_path(result)
