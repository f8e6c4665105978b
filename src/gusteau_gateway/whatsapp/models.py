"""WhatsApp message and chat models."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

USER_SUFFIX = "@c.us"
GROUP_SUFFIX = "@g.us"
PLATFORM_TAG = "whatsapp_js"


class ChatKind(str, enum.Enum):
    DIRECT = "direct"
    GROUP = "group"


class PresenceState(str, enum.Enum):
    """Indicator shown to the chat partner. CLEAR cancels typing/recording."""

    TYPING = "typing"
    RECORDING = "recording"
    CLEAR = "clear"


def jid_user(address: str) -> str:
    """User part of a WhatsApp address (e.g. "5491112345678@c.us" -> "5491112345678")."""
    return address.split("@")[0]


@dataclass(frozen=True)
class ChatHandle:
    """Fully qualified chat id (e.g. "5491112345678@c.us", "1203...@g.us")."""

    id: str

    @classmethod
    def from_target(cls, to: str) -> ChatHandle:
        """Bare recipient addresses get the user suffix; handles pass through."""
        to = to.strip()
        return cls(to if "@" in to else f"{to}{USER_SUFFIX}")

    @property
    def user(self) -> str:
        return jid_user(self.id)

    @property
    def is_group(self) -> bool:
        return self.id.endswith(GROUP_SUFFIX)

    def __str__(self) -> str:
        return self.id


@dataclass(frozen=True)
class InboundMessage:
    """Normalized inbound message. Contains PII (sender, body): never log it."""

    message_id: str
    sender: str
    chat_kind: ChatKind
    body: str
    has_media: bool
    kind: str
    notify_name: str | None = None
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class Contact:
    """Sender details as known to the session engine."""

    id: str
    number: str | None = None
    push_name: str | None = None
    saved_name: str | None = None

    @property
    def user(self) -> str:
        """Raw network identifier, used when no canonical number is known."""
        return jid_user(self.id)


@dataclass(frozen=True)
class ForwardPayload:
    """Normalized message delivered to the backend webhook."""

    restaurant_id: str
    external_id: str
    customer_name: str
    content: str
    platform: str = PLATFORM_TAG

    def as_json(self) -> dict[str, Any]:
        return {
            "restaurantId": self.restaurant_id,
            "platform": self.platform,
            "externalId": self.external_id,
            "customerName": self.customer_name,
            "content": self.content,
        }
