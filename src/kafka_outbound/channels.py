"""
Message channels: downstream destinations for outcome messages.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional, Protocol, Union

from .errors import ChannelResolutionError


class MessageChannel(Protocol):
    """Async destination for messages."""

    async def send(self, message: Any) -> None:
        ...


ChannelRef = Union[MessageChannel, str]


class QueueChannel:
    """Buffers messages in an asyncio.Queue for a consumer to receive."""

    def __init__(self, maxsize: int = 0):
        self._q: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    async def send(self, message: Any) -> None:
        await self._q.put(message)

    async def receive(self, timeout: Optional[float] = None) -> Any:
        """Next message; raises asyncio.TimeoutError if none arrives in time."""
        if timeout is None:
            return await self._q.get()
        return await asyncio.wait_for(self._q.get(), timeout=timeout)

    def receive_nowait(self) -> Optional[Any]:
        try:
            return self._q.get_nowait()
        except asyncio.QueueEmpty:
            return None

    @property
    def size(self) -> int:
        return self._q.qsize()


class CallbackChannel:
    """Hands each message to an async callable."""

    def __init__(self, callback: Callable[[Any], Awaitable[None]]):
        self._callback = callback

    async def send(self, message: Any) -> None:
        await self._callback(message)


class ChannelRegistry:
    """Name -> channel lookup used for channels configured by name.

    Example:
        registry = ChannelRegistry()
        registry.register("kafkaErrors", QueueChannel())
        registry.resolve("kafkaErrors")
    """

    def __init__(self) -> None:
        self._channels: dict[str, MessageChannel] = {}

    def register(self, name: str, channel: MessageChannel) -> None:
        self._channels[name] = channel

    def unregister(self, name: str) -> None:
        self._channels.pop(name, None)

    def resolve(self, name: str) -> MessageChannel:
        try:
            return self._channels[name]
        except KeyError:
            raise ChannelResolutionError(f"No channel registered under name '{name}'") from None

    def __contains__(self, name: str) -> bool:
        return name in self._channels


# --- Singleton accessor for in-process use ---

_registry: Optional[ChannelRegistry] = None


def channel_registry() -> ChannelRegistry:
    """Process-wide default ChannelRegistry."""
    global _registry
    if _registry is None:
        _registry = ChannelRegistry()
    return _registry
