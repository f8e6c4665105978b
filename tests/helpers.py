"""Shared test helpers: settings builder and in-memory engine/backend doubles.

These are NOT fixtures - they are regular classes and functions imported by
conftest.py and individual test files.
"""

from __future__ import annotations

from pathlib import Path

from gusteau_gateway.config import Settings
from gusteau_gateway.errors import ChatNotFoundError, DeliveryError
from gusteau_gateway.whatsapp.models import (
    ChatHandle,
    ChatKind,
    Contact,
    ForwardPayload,
    InboundMessage,
    PresenceState,
)

TEST_TOKEN = "test-gateway-token"
TEST_RESTAURANT_ID = "rest-42"
TEST_WEBHOOK_SECRET = "test-webhook-secret"
SIGNED = {"X-Webhook-Secret": TEST_WEBHOOK_SECRET}


def make_settings(tmp_path: Path | None = None, **overrides) -> Settings:
    """Settings for tests; no real engine or backend is contacted."""
    values = dict(
        port=3000,
        backend_url="http://backend.test",
        gateway_url="http://gateway.test",
        restaurant_id=TEST_RESTAURANT_ID,
        gateway_token=TEST_TOKEN,
        debug_phone_number=None,
        storage_dir=(tmp_path or Path("storage")) / "storage",
        evolution_base_url="http://engine.test",
        evolution_instance="test-instance",
        evolution_api_key="test-api-key",
        engine_webhook_secret=TEST_WEBHOOK_SECRET,
        backend_timeout=5.0,
        log_level="INFO",
    )
    values.update(overrides)
    return Settings(**values)


def make_message(
    body: str = "Hola",
    sender: str = "5491112345678@c.us",
    chat_kind: ChatKind = ChatKind.DIRECT,
    has_media: bool = False,
    notify_name: str | None = None,
    message_id: str = "MSG00000001",
) -> InboundMessage:
    return InboundMessage(
        message_id=message_id,
        sender=sender,
        chat_kind=chat_kind,
        body=body,
        has_media=has_media,
        kind="imageMessage" if has_media else "conversation",
        notify_name=notify_name,
    )


class FakeEngine:
    """SessionEngine double that records every command."""

    def __init__(
        self,
        contact: Contact | None = None,
        contact_error: Exception | None = None,
        command_error: Exception | None = None,
        missing_chats: set[str] | None = None,
        start_error: Exception | None = None,
    ) -> None:
        self.contact = contact
        self.contact_error = contact_error
        self.command_error = command_error
        self.missing_chats = missing_chats or set()
        self.start_error = start_error
        self.calls: list[tuple] = []
        self.started = False
        self.stopped = False

    async def start(self) -> None:
        self.started = True
        if self.start_error:
            raise self.start_error

    async def stop(self) -> None:
        self.stopped = True

    async def resolve_chat(self, target) -> ChatHandle:
        handle = target if isinstance(target, ChatHandle) else ChatHandle.from_target(target)
        self.calls.append(("resolve_chat", handle.id))
        if handle.id in self.missing_chats:
            raise ChatNotFoundError("chat not found")
        return handle

    async def send_message(self, handle: ChatHandle, text: str, quoted_id=None) -> None:
        if self.command_error:
            raise self.command_error
        self.calls.append(("send_message", handle.id, text, quoted_id))

    async def set_presence(self, handle: ChatHandle, state: PresenceState) -> None:
        if self.command_error:
            raise self.command_error
        self.calls.append(("set_presence", handle.id, state))

    async def reply(self, message: InboundMessage, text: str) -> None:
        self.calls.append(("reply", message.sender, text, message.message_id))

    async def get_contact(self, address: str) -> Contact:
        self.calls.append(("get_contact", address))
        if self.contact_error:
            raise self.contact_error
        return self.contact or Contact(id=address)

    def commands(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]


class FakeBackend:
    """BackendClient double collecting forwarded payloads."""

    def __init__(self, error: DeliveryError | None = None) -> None:
        self.error = error
        self.forwarded: list[ForwardPayload] = []
        self.closed = False

    async def forward(self, payload: ForwardPayload) -> None:
        if self.error:
            raise self.error
        self.forwarded.append(payload)

    async def close(self) -> None:
        self.closed = True

