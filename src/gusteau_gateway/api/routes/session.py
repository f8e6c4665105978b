"""Session status routes - QR bootstrap and health. Read-only, unauthenticated."""

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

from gusteau_gateway.observability.logging import get_logger
from gusteau_gateway.whatsapp import qr
from gusteau_gateway.whatsapp.session import SessionState

router = APIRouter(tags=["session"])

logger = get_logger(__name__)

WAITING_FOR_QR = "Waiting for QR..."


@router.get("/health")
def health(request: Request) -> dict:
    """Health check endpoint."""
    session: SessionState = request.app.state.session
    return {"status": "ok", "session": session.status.value}


@router.get("/qr")
def session_qr(request: Request) -> Response:
    """Render the latest session token as a scannable QR image."""
    session: SessionState = request.app.state.session
    token = session.current_token
    if not token:
        return PlainTextResponse(WAITING_FOR_QR)
    try:
        image = qr.render_data_uri(token)
    except Exception:
        logger.exception("QR render failed")
        return PlainTextResponse("Error generating QR", status_code=500)
    return HTMLResponse(f'<img src="{image}" />')
