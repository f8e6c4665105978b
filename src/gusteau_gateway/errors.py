"""Error taxonomy for the gateway.

- ValidationError / AuthError: detected at the HTTP boundary, before any side effect.
- TransportError / ChatNotFoundError: a session engine command failed (mapped to 500).
- DeliveryError: the backend webhook was unreachable or rejected a forward (logged only).
- InvalidPayloadError: an engine webhook payload had an unexpected shape.
"""


class GatewayError(Exception):
    """Base class for gateway errors."""


class ValidationError(GatewayError):
    """Missing or invalid request fields."""

    status_code = 400


class AuthError(GatewayError):
    """Missing (401) or invalid (403) gateway credential."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransportError(GatewayError):
    """Session engine unreachable, not ready, or rejected the command."""


class ChatNotFoundError(TransportError):
    """The messaging network does not know the requested chat."""


class DeliveryError(GatewayError):
    """Forwarding to the backend webhook failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidPayloadError(GatewayError):
    """Raised when an engine webhook payload has an invalid shape."""
