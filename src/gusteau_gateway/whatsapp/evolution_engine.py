"""Session engine backed by an Evolution API instance (WhatsApp Web).

The engine owns the browser session and credential store; this module only
issues commands over HTTP. Lifecycle and message events arrive through the
engine webhook (see api/routes/webhooks_whatsapp.py).

Security: NEVER log addresses or text. Only log hashes and lengths.
"""

from __future__ import annotations

from typing import Any

import httpx

from gusteau_gateway.config import Settings
from gusteau_gateway.errors import ChatNotFoundError, TransportError
from gusteau_gateway.observability.logging import get_logger
from gusteau_gateway.observability.redaction import hash_identifier, safe_log_context

from .events import EventChannel, SessionReady, TokenIssued
from .models import ChatHandle, Contact, InboundMessage, PresenceState, jid_user

logger = get_logger(__name__)

# Timeout for engine HTTP requests (seconds)
HTTP_TIMEOUT = 30.0

# How long the engine holds a typing/recording indicator before pausing it
PRESENCE_DELAY_MS = 1200

_PRESENCE_NAMES = {
    PresenceState.TYPING: "composing",
    PresenceState.RECORDING: "recording",
    PresenceState.CLEAR: "paused",
}

_USER_DOMAINS = ("c.us", "s.whatsapp.net")


def _is_user_handle(handle: ChatHandle) -> bool:
    return handle.id.rsplit("@", 1)[-1] in _USER_DOMAINS


def _engine_number(handle: ChatHandle) -> str:
    """Recipient as the engine expects it: bare number for users, full id otherwise."""
    return handle.user if _is_user_handle(handle) else handle.id


def _first_record(body: Any) -> dict[str, Any]:
    """First object of a list response; {} for any other shape."""
    if isinstance(body, list) and body and isinstance(body[0], dict):
        return body[0]
    return {}


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


class EvolutionEngine:
    """SessionEngine implementation over the Evolution REST API."""

    def __init__(
        self,
        settings: Settings,
        channel: EventChannel,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = settings.evolution_base_url
        self._instance = settings.evolution_instance
        self._api_key = settings.evolution_api_key
        self._channel = channel
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={"apikey": self._api_key},
                timeout=HTTP_TIMEOUT,
            )
        return self._client

    async def _request(
        self, method: str, path: str, json: dict[str, Any] | None = None
    ) -> Any:
        """Execute an engine request. Raises TransportError on any failure."""
        url = f"{path}/{self._instance}"
        try:
            response = await self._get_client().request(method, url, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"engine rejected {path}: HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"engine unreachable: {type(e).__name__}") from e
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    async def start(self) -> None:
        """Request the session; publish the QR token or readiness."""
        body = await self._request("GET", "/instance/connect")
        if not isinstance(body, dict):
            body = {}
        token = body.get("code")
        if token and isinstance(token, str):
            self._channel.publish(TokenIssued(token=token))
            return
        instance = body.get("instance")
        state = (instance.get("state") if isinstance(instance, dict) else None) or body.get(
            "state"
        )
        if state == "open":
            self._channel.publish(SessionReady())
        else:
            logger.info(
                "engine session pending",
                extra={"extra_fields": safe_log_context(state=state)},
            )

    async def stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def resolve_chat(self, target: str | ChatHandle) -> ChatHandle:
        handle = target if isinstance(target, ChatHandle) else ChatHandle.from_target(target)
        if not _is_user_handle(handle):
            return handle

        results = await self._request(
            "POST", "/chat/whatsappNumbers", json={"numbers": [handle.user]}
        )
        match = _first_record(results)
        if not match.get("exists"):
            logger.warning(
                "chat not found",
                extra={"extra_fields": safe_log_context(to_hash=hash_identifier(handle.id))},
            )
            raise ChatNotFoundError("chat not found")
        return handle

    async def send_message(
        self, handle: ChatHandle, text: str, quoted_id: str | None = None
    ) -> None:
        payload: dict[str, Any] = {"number": _engine_number(handle), "text": text}
        if quoted_id:
            payload["quoted"] = {"key": {"id": quoted_id}}

        log_ctx = safe_log_context(
            to_hash=hash_identifier(handle.id),
            text_len=len(text),
            quoted=bool(quoted_id),
        )
        await self._request("POST", "/message/sendText", json=payload)
        logger.info("message sent", extra={"extra_fields": log_ctx})

    async def set_presence(self, handle: ChatHandle, state: PresenceState) -> None:
        payload = {
            "number": _engine_number(handle),
            "presence": _PRESENCE_NAMES[state],
            "delay": 0 if state is PresenceState.CLEAR else PRESENCE_DELAY_MS,
        }
        await self._request("POST", "/chat/sendPresence", json=payload)
        logger.debug(
            "presence updated",
            extra={
                "extra_fields": safe_log_context(
                    to_hash=hash_identifier(handle.id), state=state.value
                )
            },
        )

    async def reply(self, message: InboundMessage, text: str) -> None:
        await self.send_message(
            ChatHandle.from_target(message.sender), text, quoted_id=message.message_id
        )

    async def get_contact(self, address: str) -> Contact:
        records = await self._request(
            "POST", "/chat/findContacts", json={"where": {"remoteJid": address}}
        )
        record = _first_record(records)
        contact_id = record.get("remoteJid") or record.get("id") or address
        if not isinstance(contact_id, str):
            contact_id = address
        domain = contact_id.rsplit("@", 1)[-1] if "@" in contact_id else ""
        return Contact(
            id=contact_id,
            # @lid ids are opaque; only user domains carry a phone number
            number=jid_user(contact_id) if domain in _USER_DOMAINS else None,
            push_name=_text(record.get("pushName")),
            saved_name=_text(record.get("name")),
        )
