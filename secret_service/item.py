"""Item handle: one secret record with a label and attributes."""
import logging

from .defines import SS_INTERFACE_ITEM
from .exceptions import ParseError
from .models import AttributesSource, EncryptedSecret, make_attributes, parse_attributes
from .objects import SecretObject

logger = logging.getLogger("secret_service")


class Item(SecretObject):
    """A secret stored in a collection.

    The secret value is only fetched and decrypted when asked for.
    """

    interface = SS_INTERFACE_ITEM

    async def get_attributes(self) -> dict[str, str]:
        return parse_attributes(await self.proxy.get("Attributes"))

    async def set_attributes(self, attributes: AttributesSource) -> None:
        await self.proxy.set("Attributes", "a{ss}", make_attributes(attributes))

    async def _get_encrypted_secret(self) -> EncryptedSecret:
        await self.ensure_unlocked()
        session = self._service.session
        reply = await self.proxy.call("GetSecret", "o", (session.handle,))
        if len(reply) != 1:
            raise ParseError(f"GetSecret on {self._path} returned {len(reply)} values")
        return EncryptedSecret.from_dbus(reply[0])

    async def get_secret(self) -> bytes:
        """Fetch and decrypt the secret.

        Raises:
            LockedError: If the item is locked; call :meth:`unlock` first.
            CryptoError: If the value cannot be decrypted.
        """
        secret = await self._get_encrypted_secret()
        return self._service.session.open_secret(secret)

    async def get_secret_content_type(self) -> str:
        secret = await self._get_encrypted_secret()
        return secret.content_type

    async def set_secret(self, secret: bytes,
                         content_type: str = "text/plain") -> None:
        encrypted = self._service.session.format_secret(secret, content_type)
        await self.proxy.call("SetSecret", "(oayays)", (encrypted.to_dbus(),))
        logger.debug("Updated secret of item %s", self._path)
