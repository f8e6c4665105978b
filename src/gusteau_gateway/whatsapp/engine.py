"""Session engine contract consumed by the relay and the outbound API."""

from __future__ import annotations

from typing import Protocol

from .models import ChatHandle, Contact, InboundMessage, PresenceState


class SessionEngine(Protocol):
    """Long-lived connection to the WhatsApp session.

    Session lifecycle events (token issued, ready, inbound message) reach the
    gateway through the EventChannel. Every command raises TransportError when
    the engine is unreachable, not ready, or rejects the call; commands are
    never retried.
    """

    async def start(self) -> None: ...

    async def stop(self) -> None: ...

    async def resolve_chat(self, target: str | ChatHandle) -> ChatHandle:
        """Raises ChatNotFoundError if the network does not know the chat."""
        ...

    async def send_message(
        self, handle: ChatHandle, text: str, quoted_id: str | None = None
    ) -> None: ...

    async def set_presence(self, handle: ChatHandle, state: PresenceState) -> None: ...

    async def reply(self, message: InboundMessage, text: str) -> None: ...

    async def get_contact(self, address: str) -> Contact: ...
