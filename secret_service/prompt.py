"""
Prompt Controller — drives the Secret Service confirmation protocol.

Privileged daemon calls (unlock, lock, delete, create) may answer with the
path of a Prompt object instead of a result. Resolving it means calling
``Prompt(window_id)`` and then waiting for the ``Completed(dismissed,
result)`` signal emitted on that exact path::

    ISSUED --Prompt()--> DISPLAYED --Completed--> COMPLETED | DISMISSED

If the waiting task is cancelled, the state becomes DISMISSED and
``Dismiss()`` is still sent in the background so the daemon does not
keep the prompt around. The same holds for a caller cancelled while
queued behind another prompt, and for one refused with
:exc:`PromptBusyError`.

Only one prompt is resolved at a time per controller. With the ``queue``
policy further callers wait their turn; with ``fail`` they get
:exc:`PromptBusyError` straight away.
"""
import asyncio
import logging
from enum import Enum
from typing import Any, Optional, Union

from .defines import SS_INTERFACE_PROMPT
from .exceptions import (
    ParseError,
    PromptBusyError,
    PromptDismissedError,
    SecretServiceException,
)
from .models import PromptHandle
from .transport import Proxy, Transport

logger = logging.getLogger("secret_service")


class PromptState(Enum):
    ISSUED = "issued"
    DISPLAYED = "displayed"
    COMPLETED = "completed"
    DISMISSED = "dismissed"


class PromptController:
    """Resolves prompt handles one at a time over a shared transport."""

    def __init__(self, transport: Transport, window_id: str = "",
                 policy: str = "queue"):
        if policy not in ("queue", "fail"):
            raise ValueError(f"Unsupported prompt policy: {policy}")
        self._transport = transport
        self._window_id = window_id
        self._policy = policy
        self._lock = asyncio.Lock()
        self._cleanup: set[asyncio.Task] = set()
        self.state: Optional[PromptState] = None

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def resolve(self, prompt: Union[PromptHandle, str],
                      window_id: Optional[str] = None) -> Any:
        """Show the prompt and wait for the user's answer.

        Returns:
            The value carried by the ``Completed`` signal (variant unwrapped).

        Raises:
            PromptDismissedError: If the user dismissed the prompt.
            PromptBusyError: With the ``fail`` policy, if another prompt is
                still outstanding. The refused prompt is dismissed.
        """
        path = prompt.path if isinstance(prompt, PromptHandle) else prompt
        if window_id is None:
            window_id = self._window_id
        proxy = Proxy(self._transport, path, SS_INTERFACE_PROMPT)
        if self._policy == "fail" and self._lock.locked():
            self._dismiss_in_background(proxy)
            raise PromptBusyError(f"A prompt is already outstanding, refusing {path}")
        try:
            await self._lock.acquire()
        except asyncio.CancelledError:
            # never shown, but the daemon already holds the prompt object
            self._dismiss_in_background(proxy)
            raise
        try:
            return await self._resolve(proxy, window_id)
        finally:
            self._lock.release()

    async def _resolve(self, proxy: Proxy, window_id: str) -> Any:
        path = proxy.path
        self._set_state(path, PromptState.ISSUED)
        try:
            async with self._transport.subscribe(
                path, SS_INTERFACE_PROMPT, "Completed",
            ) as signals:
                await proxy.call("Prompt", "s", (window_id,))
                self._set_state(path, PromptState.DISPLAYED)
                dismissed, result = await self._wait_completed(path, signals)
        except asyncio.CancelledError:
            self._set_state(path, PromptState.DISMISSED)
            self._dismiss_in_background(proxy)
            raise
        if dismissed:
            self._set_state(path, PromptState.DISMISSED)
            raise PromptDismissedError(f"Prompt {path} was dismissed")
        self._set_state(path, PromptState.COMPLETED)
        return result

    @staticmethod
    async def _wait_completed(path: str, signals) -> tuple[bool, Any]:
        async for signal in signals:
            if signal.path != path:
                continue
            try:
                dismissed, (_signature, result) = signal.body
            except (TypeError, ValueError):
                raise ParseError(
                    f"Malformed Completed signal on {path}"
                ) from None
            if not isinstance(dismissed, bool):
                raise ParseError(f"Malformed Completed signal on {path}")
            return dismissed, result
        raise ParseError(f"Signal stream for {path} ended before completion")

    def _set_state(self, path: str, state: PromptState) -> None:
        self.state = state
        logger.debug("Prompt %s: %s", path, state.value)

    def _dismiss_in_background(self, proxy: Proxy) -> None:
        task = asyncio.ensure_future(self._dismiss(proxy))
        self._cleanup.add(task)
        task.add_done_callback(self._cleanup.discard)

    @staticmethod
    async def _dismiss(proxy: Proxy) -> None:
        try:
            await proxy.call("Dismiss")
        except SecretServiceException as err:
            logger.warning("Could not dismiss prompt %s: %s", proxy.path, err)
        else:
            logger.debug("Dismissed abandoned prompt %s", proxy.path)
