"""Collection handle: a named, lockable container of items."""
import logging

from .defines import SS_INTERFACE_COLLECTION, SS_ITEM_ATTRIBUTES, SS_ITEM_LABEL
from .exceptions import ParseError
from .item import Item
from .models import AttributesSource, make_attributes, parse_object_paths
from .objects import SecretObject, resolve_created

logger = logging.getLogger("secret_service")


class Collection(SecretObject):
    """A collection of items, e.g. the user's login keyring."""

    interface = SS_INTERFACE_COLLECTION

    def _items(self, paths) -> list[Item]:
        return [Item(self._service, path) for path in parse_object_paths(paths)]

    async def get_all_items(self) -> list[Item]:
        return self._items(await self.proxy.get("Items"))

    async def search_items(self, attributes: AttributesSource) -> list[Item]:
        """Items of this collection carrying every given attribute.

        Extra attributes on an item do not prevent a match.
        """
        reply = await self.proxy.call(
            "SearchItems", "a{ss}", (make_attributes(attributes),),
        )
        if len(reply) != 1:
            raise ParseError(f"SearchItems on {self._path} returned {len(reply)} values")
        return self._items(reply[0])

    async def create_item(
        self,
        label: str,
        attributes: AttributesSource,
        secret: bytes,
        replace: bool = False,
        content_type: str = "text/plain",
    ) -> Item:
        """Store a new secret in this collection.

        With ``replace`` an existing item with identical attributes is
        overwritten in place; otherwise a new item is always created.

        Raises:
            LockedError: If the collection is locked.
            PromptDismissedError: If the daemon prompted and the user refused.
        """
        await self.ensure_unlocked()
        properties = {
            SS_ITEM_LABEL: ("s", label),
            SS_ITEM_ATTRIBUTES: ("a{ss}", make_attributes(attributes)),
        }
        encrypted = self._service.session.format_secret(secret, content_type)
        reply = await self.proxy.call(
            "CreateItem", "a{sv}(oayays)b",
            (properties, encrypted.to_dbus(), replace),
        )
        try:
            created, prompt = reply
        except ValueError:
            raise ParseError(f"CreateItem on {self._path} returned {len(reply)} values") from None
        path = await resolve_created(self._service, created, prompt)
        logger.info("Created item %s in %s", path, self._path)
        return Item(self._service, path)
