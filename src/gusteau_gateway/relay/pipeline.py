"""Inbound relay: decide which messages reach the backend and in what shape.

Rules run in order and stop at the first that rejects:

1. group chats are dropped
2. with DEBUG_PHONE_NUMBER set, senders not containing it are dropped
3. media messages get a fixed apology reply and are not forwarded
4. sender number and display name are resolved (best-effort)
5. the normalized payload is forwarded to the backend (fire-and-forget)

Security: NEVER log sender addresses, names or text. Only log hashes and lengths.
"""

from __future__ import annotations

import enum

from gusteau_gateway.errors import DeliveryError, TransportError
from gusteau_gateway.observability.logging import get_logger
from gusteau_gateway.observability.redaction import hash_identifier, safe_log_context
from gusteau_gateway.whatsapp.engine import SessionEngine
from gusteau_gateway.whatsapp.models import (
    ChatKind,
    Contact,
    ForwardPayload,
    InboundMessage,
)

from .backend import BackendClient

logger = get_logger(__name__)

MEDIA_APOLOGY = (
    "Lo siento, no procesamos mensajes con archivos multimedia "
    "(imágenes, audios, documentos). Por favor enviame un mensaje de texto."
)

UNKNOWN_NAME = "Unknown"


class RelayOutcome(str, enum.Enum):
    IGNORED_GROUP = "ignored_group"
    IGNORED_DEBUG_FILTER = "ignored_debug_filter"
    REJECTED_MEDIA = "rejected_media"
    FORWARDED = "forwarded"
    DELIVERY_FAILED = "delivery_failed"


def resolve_number(contact: Contact) -> str:
    """Canonical number when known, raw network identifier otherwise."""
    return contact.number or contact.user


def resolve_name(contact: Contact, message: InboundMessage) -> str:
    """push name -> saved contact name -> notification name -> "Unknown"."""
    return (
        contact.push_name
        or contact.saved_name
        or message.notify_name
        or UNKNOWN_NAME
    )


class InboundRelay:
    """Filters, normalizes and forwards inbound messages."""

    def __init__(
        self,
        engine: SessionEngine,
        backend: BackendClient,
        restaurant_id: str,
        debug_phone_number: str | None = None,
    ) -> None:
        self._engine = engine
        self._backend = backend
        self._restaurant_id = restaurant_id
        self._debug_phone_number = debug_phone_number

    async def _lookup_contact(self, message: InboundMessage) -> Contact:
        try:
            return await self._engine.get_contact(message.sender)
        except TransportError as e:
            logger.warning(
                "contact lookup failed, using sender address",
                extra={"extra_fields": safe_log_context(error=str(e))},
            )
            return Contact(id=message.sender)

    async def handle(self, message: InboundMessage) -> RelayOutcome:
        """Run one inbound message through the relay rules."""
        log_ctx = safe_log_context(
            message_id_prefix=message.message_id[:8],
            from_hash=hash_identifier(message.sender),
            kind=message.kind,
        )

        if message.chat_kind is ChatKind.GROUP:
            logger.info("message ignored (group)", extra={"extra_fields": log_ctx})
            return RelayOutcome.IGNORED_GROUP

        if self._debug_phone_number and self._debug_phone_number not in message.sender:
            logger.info(
                "message ignored (debug filter active)", extra={"extra_fields": log_ctx}
            )
            return RelayOutcome.IGNORED_DEBUG_FILTER

        if message.has_media:
            logger.info("media message rejected", extra={"extra_fields": log_ctx})
            await self._engine.reply(message, MEDIA_APOLOGY)
            return RelayOutcome.REJECTED_MEDIA

        contact = await self._lookup_contact(message)
        payload = ForwardPayload(
            restaurant_id=self._restaurant_id,
            external_id=resolve_number(contact),
            customer_name=resolve_name(contact, message),
            content=message.body,
        )

        try:
            await self._backend.forward(payload)
        except DeliveryError as e:
            logger.error(
                "failed to forward message to backend",
                extra={
                    "extra_fields": safe_log_context(
                        **log_ctx, error=str(e), status_code=e.status_code
                    )
                },
            )
            return RelayOutcome.DELIVERY_FAILED

        logger.info(
            "message forwarded",
            extra={"extra_fields": safe_log_context(**log_ctx, text_len=len(message.body))},
        )
        return RelayOutcome.FORWARDED
