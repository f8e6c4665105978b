"""Evolution API adapter - validate and normalize engine webhook payloads."""

from datetime import datetime, timezone
from typing import Any

from gusteau_gateway.errors import InvalidPayloadError

from .events import EngineEvent, MessageReceived, SessionReady, TokenIssued
from .models import GROUP_SUFFIX, ChatKind, InboundMessage

EVENT_QRCODE_UPDATED = "qrcode.updated"
EVENT_CONNECTION_UPDATE = "connection.update"
EVENT_MESSAGES_UPSERT = "messages.upsert"

STATUS_BROADCAST = "status@broadcast"

MEDIA_MESSAGE_TYPES = frozenset(
    {
        "imageMessage",
        "videoMessage",
        "audioMessage",
        "documentMessage",
        "documentWithCaptionMessage",
        "stickerMessage",
        "ptvMessage",
    }
)


def _event_name(payload: dict[str, Any]) -> str:
    # Evolution v1 sends "QRCODE_UPDATED", v2 sends "qrcode.updated"
    return str(payload.get("event", "")).lower().replace("_", ".")


def _extract_text(message_type: str, message: dict[str, Any]) -> str:
    """Text body, or the caption of a media message. Empty if none."""
    if message_type == "conversation":
        return message.get("conversation") or ""
    if message_type == "extendedTextMessage":
        return (message.get("extendedTextMessage") or {}).get("text") or ""
    content = message.get(message_type)
    if isinstance(content, dict):
        return content.get("caption") or ""
    return ""


def _has_media(message_type: str, message: dict[str, Any]) -> bool:
    if message_type in MEDIA_MESSAGE_TYPES:
        return True
    return any(key in MEDIA_MESSAGE_TYPES for key in message)


def _parse_token(data: dict[str, Any]) -> TokenIssued:
    qrcode = data.get("qrcode") or {}
    token = qrcode.get("code") or data.get("code")
    if not token or not isinstance(token, str):
        raise InvalidPayloadError("missing qrcode code")
    return TokenIssued(token=token)


def normalize_message(data: dict[str, Any]) -> InboundMessage | None:
    """Normalize a messages.upsert payload.

    Returns:
        InboundMessage, or None for messages the relay never sees (own
        messages and status broadcasts).

    Raises:
        InvalidPayloadError: If required fields are missing or invalid.
    """
    key = data.get("key", {})

    message_id = key.get("id")
    if not message_id or not isinstance(message_id, str):
        raise InvalidPayloadError("missing or invalid message_id")

    remote_jid = key.get("remoteJid", "")
    if not remote_jid:
        raise InvalidPayloadError("missing remoteJid")

    if key.get("fromMe") or remote_jid == STATUS_BROADCAST:
        return None

    message_type = data.get("messageType", "unknown")
    message = data.get("message") or {}
    is_group = remote_jid.endswith(GROUP_SUFFIX)

    return InboundMessage(
        message_id=message_id,
        # In groups remoteJid is the group; the author is the participant
        sender=(key.get("participant") or remote_jid) if is_group else remote_jid,
        chat_kind=ChatKind.GROUP if is_group else ChatKind.DIRECT,
        body=_extract_text(message_type, message),
        has_media=_has_media(message_type, message),
        kind=str(message_type),
        notify_name=data.get("pushName") or None,
        received_at=datetime.now(timezone.utc),
    )


def parse_event(payload: dict[str, Any]) -> EngineEvent | None:
    """Translate an Evolution webhook payload into an engine event.

    Returns:
        TokenIssued, SessionReady or MessageReceived; None for events the
        gateway does not act on.

    Raises:
        InvalidPayloadError: If a relevant event has an invalid shape.
    """
    if not isinstance(payload, dict):
        raise InvalidPayloadError("payload must be an object")

    event = _event_name(payload)
    data = payload.get("data") or {}
    if not isinstance(data, dict):
        raise InvalidPayloadError("data must be an object")

    if event == EVENT_QRCODE_UPDATED:
        return _parse_token(data)

    if event == EVENT_CONNECTION_UPDATE:
        return SessionReady() if data.get("state") == "open" else None

    if event == EVENT_MESSAGES_UPSERT:
        message = normalize_message(data)
        return MessageReceived(message) if message else None

    return None
