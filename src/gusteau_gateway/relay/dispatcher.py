"""Single consumer of the engine event channel."""

from __future__ import annotations

import asyncio

from gusteau_gateway.observability.correlation import correlation_scope
from gusteau_gateway.observability.logging import get_logger
from gusteau_gateway.observability.redaction import safe_log_context
from gusteau_gateway.whatsapp.events import (
    EngineEvent,
    EventChannel,
    MessageReceived,
    SessionReady,
    TokenIssued,
)
from gusteau_gateway.whatsapp.models import InboundMessage
from gusteau_gateway.whatsapp.session import SessionState

from .pipeline import InboundRelay

logger = get_logger(__name__)

# Seconds in-flight relays get to finish once the channel is closed
SHUTDOWN_GRACE = 10.0


class EventDispatcher:
    """Applies engine events: session state updates and inbound relay.

    The only writer of SessionState. Session events are applied in arrival
    order; each inbound message is relayed in its own task so a slow backend
    or engine call never holds back later events.
    """

    def __init__(
        self,
        channel: EventChannel,
        session: SessionState,
        relay: InboundRelay,
        gateway_url: str,
        shutdown_grace: float = SHUTDOWN_GRACE,
    ) -> None:
        self._channel = channel
        self._session = session
        self._relay = relay
        self._gateway_url = gateway_url
        self._shutdown_grace = shutdown_grace
        self._in_flight: set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def dispatch(self, event: EngineEvent) -> None:
        if isinstance(event, TokenIssued):
            self._session.issue_token(event.token)
            logger.info(
                "QR received",
                extra={
                    "extra_fields": safe_log_context(qr_url=f"{self._gateway_url}/qr")
                },
            )
        elif isinstance(event, SessionReady):
            self._session.mark_ready()
            logger.info("WhatsApp client ready")
        elif isinstance(event, MessageReceived):
            task = asyncio.create_task(self._relay_message(event.message))
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)
        else:
            logger.warning(
                "unknown engine event",
                extra={"extra_fields": safe_log_context(event_type=type(event).__name__)},
            )

    async def _relay_message(self, message: InboundMessage) -> None:
        try:
            await self._relay.handle(message)
        except Exception:
            # One bad message must not affect the others
            logger.exception(
                "inbound relay failed",
                extra={"extra_fields": safe_log_context(message_id=message.message_id)},
            )

    async def run(self) -> None:
        """Consume events until the channel is closed, then drain relays."""
        async for event in self._channel:
            with correlation_scope():
                try:
                    await self.dispatch(event)
                except Exception:
                    logger.exception(
                        "engine event handling failed",
                        extra={
                            "extra_fields": safe_log_context(
                                event_type=type(event).__name__
                            )
                        },
                    )
        await self.drain()

    async def drain(self) -> None:
        """Wait for in-flight relays up to the shutdown grace, cancel the rest."""
        if not self._in_flight:
            return
        _, pending = await asyncio.wait(
            set(self._in_flight), timeout=self._shutdown_grace
        )
        if not pending:
            return
        logger.warning(
            "cancelling in-flight relays",
            extra={"extra_fields": safe_log_context(count=len(pending))},
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
