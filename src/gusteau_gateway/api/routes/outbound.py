"""Outbound routes - the backend pushes messages and chat presence through these.

Each call validates the body, then the Bearer credential, then dispatches
session engine commands. Engine failures map to a generic 500.
"""

from __future__ import annotations

from typing import Any, TypeVar

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from gusteau_gateway.api.auth import verify_gateway_token
from gusteau_gateway.errors import AuthError, TransportError, ValidationError
from gusteau_gateway.observability.correlation import get_correlation_id
from gusteau_gateway.observability.logging import get_logger
from gusteau_gateway.observability.redaction import hash_identifier, safe_log_context
from gusteau_gateway.whatsapp.engine import SessionEngine
from gusteau_gateway.whatsapp.models import ChatHandle, PresenceState

router = APIRouter(tags=["outbound"])

logger = get_logger(__name__)

INVALID_STATE = "Invalid state. Use 'typing', 'recording', or 'clear'"


class SendMessageRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    to: str | None = None
    message: str | None = None


class ChatStateRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    to: str | None = None
    state: str | None = None


ModelT = TypeVar("ModelT", bound=BaseModel)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _read_body(request: Request, model: type[ModelT]) -> ModelT:
    """Parse the JSON body into model. Raises ValidationError on bad input."""
    try:
        payload: Any = await request.json()
    except ValueError as e:
        raise ValidationError("Invalid JSON body") from e
    if not isinstance(payload, dict):
        raise ValidationError("Body must be a JSON object")
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError("Invalid request body") from e


def _engine(request: Request) -> SessionEngine:
    return request.app.state.engine


@router.post("/send")
async def send_message(request: Request) -> JSONResponse:
    """Send a text message to a recipient address or chat handle.

    Returns:
        200 {"success": true} once the engine accepted the message.
        400 missing fields, 401/403 auth, 500 send failure.
    """
    try:
        body = await _read_body(request, SendMessageRequest)
        if not body.to or not body.message:
            raise ValidationError("Missing 'to' or 'message'")
        verify_gateway_token(request, request.app.state.settings.gateway_token)
    except (ValidationError, AuthError) as e:
        return _error(e.status_code, str(e))

    engine = _engine(request)
    log_ctx = safe_log_context(
        correlationId=get_correlation_id(),
        to_hash=hash_identifier(body.to),
        text_len=len(body.message),
    )

    try:
        handle = await engine.resolve_chat(ChatHandle.from_target(body.to))
        # Stop typing when sending a message
        await engine.set_presence(handle, PresenceState.CLEAR)
        await engine.send_message(handle, body.message)
    except TransportError:
        logger.exception("error sending message", extra={"extra_fields": log_ctx})
        return _error(500, "Failed to send message")

    return JSONResponse(content={"success": True})


@router.post("/chat/state")
async def set_chat_state(request: Request) -> JSONResponse:
    """Show or clear a typing/recording indicator in a chat.

    Returns:
        200 {"success": true}.
        400 missing fields or unknown state, 401/403 auth, 500 engine failure.
    """
    try:
        body = await _read_body(request, ChatStateRequest)
        if not body.to or not body.state:
            raise ValidationError("Missing 'to' or 'state'")
        try:
            state = PresenceState(body.state)
        except ValueError as e:
            raise ValidationError(INVALID_STATE) from e
        verify_gateway_token(request, request.app.state.settings.gateway_token)
    except (ValidationError, AuthError) as e:
        return _error(e.status_code, str(e))

    engine = _engine(request)
    log_ctx = safe_log_context(
        correlationId=get_correlation_id(),
        to_hash=hash_identifier(body.to),
        state=state.value,
    )

    try:
        handle = await engine.resolve_chat(ChatHandle.from_target(body.to))
        await engine.set_presence(handle, state)
    except TransportError:
        logger.exception("error setting chat state", extra={"extra_fields": log_ctx})
        return _error(500, "Failed to update chat state")

    return JSONResponse(content={"success": True})
