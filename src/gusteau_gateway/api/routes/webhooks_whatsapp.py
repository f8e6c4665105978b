"""WhatsApp engine webhook - Evolution API pushes session and message events here.

Events are normalized and queued for the dispatcher; the relay never runs
inside the request. Logs contain NO PII.
"""

import hmac
from typing import Any

from fastapi import APIRouter, Header, Request, Response

from gusteau_gateway.errors import InvalidPayloadError
from gusteau_gateway.observability.correlation import get_correlation_id
from gusteau_gateway.observability.logging import get_logger
from gusteau_gateway.observability.redaction import safe_log_context
from gusteau_gateway.whatsapp.evolution_adapter import parse_event
from gusteau_gateway.whatsapp.events import EventChannel

router = APIRouter(prefix="/webhooks/whatsapp", tags=["webhooks"])

logger = get_logger(__name__)


@router.post("/evolution")
async def evolution_webhook(
    request: Request,
    x_webhook_secret: str | None = Header(None, alias="X-Webhook-Secret"),
) -> Response:
    """Receive an Evolution API webhook.

    Returns:
        200 "ok" if queued, 200 "ignored" for events the gateway does not use.
        400 Bad Request if payload invalid.
        401 Unauthorized if secret validation fails.
    """
    correlation_id = get_correlation_id()
    settings = request.app.state.settings
    expected_secret = settings.engine_webhook_secret

    # Webhook secret validation (fail-closed)
    if not expected_secret:
        if settings.allow_unsigned_webhooks:
            logger.warning(
                "EVOLUTION_WEBHOOK_SECRET not set - skipping validation (local dev)",
                extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
            )
        else:
            logger.error(
                "EVOLUTION_WEBHOOK_SECRET not configured - rejecting webhook (fail-closed)",
                extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
            )
            return Response(status_code=401, content="unauthorized")
    elif not x_webhook_secret or not hmac.compare_digest(
        x_webhook_secret.encode(), expected_secret.encode()
    ):
        logger.warning(
            "evolution webhook secret mismatch",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return Response(status_code=401, content="unauthorized")

    try:
        payload: dict[str, Any] = await request.json()
    except ValueError:
        logger.warning(
            "invalid json body",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return Response(status_code=400, content="invalid json")

    try:
        event = parse_event(payload)
    except InvalidPayloadError as e:
        logger.warning(
            "invalid evolution payload shape",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=correlation_id, reason=str(e)
                )
            },
        )
        return Response(status_code=400, content="invalid payload shape")

    if event is None:
        return Response(status_code=200, content="ignored")

    channel: EventChannel = request.app.state.channel
    channel.publish(event)
    logger.info(
        "engine event queued",
        extra={
            "extra_fields": safe_log_context(
                correlationId=correlation_id, event_type=type(event).__name__
            )
        },
    )
    return Response(status_code=200, content="ok")
