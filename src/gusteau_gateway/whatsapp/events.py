"""Typed session engine events and the channel they travel on."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Union

from .models import InboundMessage


@dataclass(frozen=True)
class TokenIssued:
    """A new session token (QR code payload) is available for scanning."""

    token: str


@dataclass(frozen=True)
class SessionReady:
    """The engine finished authenticating the session."""


@dataclass(frozen=True)
class MessageReceived:
    message: InboundMessage


EngineEvent = Union[TokenIssued, SessionReady, MessageReceived]

_CLOSED = object()


class EventChannel:
    """Unbounded FIFO of engine events, consumed by a single dispatcher task.

    Producers (the engine webhook route, the engine itself on start) call
    publish(); the consumer awaits get() until close() ends the stream.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, event: EngineEvent) -> None:
        if self._closed:
            raise RuntimeError("event channel is closed")
        self._queue.put_nowait(event)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    def pending(self) -> int:
        return self._queue.qsize()

    async def get(self) -> EngineEvent | None:
        """Next event, or None once the channel is closed and drained."""
        item = await self._queue.get()
        if item is _CLOSED:
            return None
        return item

    def __aiter__(self) -> EventChannel:
        return self

    async def __anext__(self) -> EngineEvent:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event
