"""FastAPI application factory.

Wires the session state, event channel, session engine, inbound relay and
HTTP routes. The lifespan prepares session storage, starts the event
dispatcher, then starts the engine.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response

from gusteau_gateway.config import Settings, load_settings
from gusteau_gateway.errors import TransportError
from gusteau_gateway.observability.correlation import (
    CORRELATION_ID_HEADER,
    correlation_scope,
)
from gusteau_gateway.observability.logging import get_logger
from gusteau_gateway.observability.redaction import safe_log_context
from gusteau_gateway.relay.backend import BackendClient
from gusteau_gateway.relay.dispatcher import EventDispatcher
from gusteau_gateway.relay.pipeline import InboundRelay
from gusteau_gateway.storage.bootstrap import bootstrap_storage
from gusteau_gateway.whatsapp.engine import SessionEngine
from gusteau_gateway.whatsapp.events import EventChannel
from gusteau_gateway.whatsapp.evolution_engine import EvolutionEngine
from gusteau_gateway.whatsapp.session import SessionState

from .routes import outbound, session, webhooks_whatsapp

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    engine: SessionEngine = app.state.engine

    bootstrap_storage(settings.storage_dir)

    dispatcher_task = asyncio.create_task(app.state.dispatcher.run())

    try:
        await engine.start()
    except TransportError as e:
        # The engine may still come up and report through its webhook
        logger.error(
            "session engine start failed",
            extra={"extra_fields": safe_log_context(error=str(e))},
        )

    try:
        yield
    finally:
        app.state.channel.close()
        await dispatcher_task
        await engine.stop()
        await app.state.backend.close()


def create_app(
    settings: Settings | None = None,
    engine: SessionEngine | None = None,
    backend: BackendClient | None = None,
) -> FastAPI:
    """Create the gateway app.

    Args:
        settings: Explicit settings. If None, read from the environment.
        engine: Session engine override. Defaults to the Evolution engine.
        backend: Backend webhook client override.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = load_settings()

    app = FastAPI(
        title="Gusteau WhatsApp Gateway",
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )

    channel = EventChannel()
    if engine is None:
        engine = EvolutionEngine(settings, channel)
    if backend is None:
        backend = BackendClient(settings.backend_url, timeout=settings.backend_timeout)

    session_state = SessionState()
    relay = InboundRelay(
        engine,
        backend,
        restaurant_id=settings.restaurant_id,
        debug_phone_number=settings.debug_phone_number,
    )

    app.state.settings = settings
    app.state.channel = channel
    app.state.engine = engine
    app.state.backend = backend
    app.state.session = session_state
    app.state.relay = relay
    app.state.dispatcher = EventDispatcher(
        channel, session_state, relay, gateway_url=settings.gateway_url
    )

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        with correlation_scope(request.headers.get(CORRELATION_ID_HEADER)) as cid:
            response = await call_next(request)
        response.headers[CORRELATION_ID_HEADER] = cid
        return response

    app.include_router(session.router)
    app.include_router(outbound.router)
    app.include_router(webhooks_whatsapp.router)

    return app
