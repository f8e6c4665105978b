"""Shared-secret Bearer authentication for the outbound API."""

from __future__ import annotations

import hmac

from fastapi import Request

from gusteau_gateway.errors import AuthError
from gusteau_gateway.observability.logging import get_logger
from gusteau_gateway.observability.redaction import safe_log_context

logger = get_logger(__name__)

MISSING_TOKEN = "Missing authorization token."
INVALID_TOKEN = "Invalid token."


def extract_bearer_token(request: Request) -> str | None:
    """Extract Bearer token from Authorization header.

    Returns:
        Token string if valid Bearer format, None otherwise.
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    return auth_header[7:]


def verify_gateway_token(request: Request, expected: str) -> None:
    """Check the request credential against the gateway's shared secret.

    Raises:
        AuthError: 401 when the header is missing or not Bearer, 403 when the
            token does not match. An empty configured secret matches nothing.
    """
    token = extract_bearer_token(request)
    if token is None:
        logger.warning(
            "gateway auth failed: missing Bearer token",
            extra={"extra_fields": safe_log_context(path=request.url.path)},
        )
        raise AuthError(MISSING_TOKEN, status_code=401)

    if not expected or not hmac.compare_digest(token.encode(), expected.encode()):
        logger.warning(
            "gateway auth failed: invalid token",
            extra={"extra_fields": safe_log_context(path=request.url.path)},
        )
        raise AuthError(INVALID_TOKEN, status_code=403)
