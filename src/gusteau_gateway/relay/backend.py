"""HTTP client for the Gusteau backend webhook.

Delivery is at-most-once: no retries. Failures raise DeliveryError for the
caller to log.
"""

from __future__ import annotations

import httpx

from gusteau_gateway.errors import DeliveryError
from gusteau_gateway.observability.correlation import (
    CORRELATION_ID_HEADER,
    get_correlation_id,
)
from gusteau_gateway.observability.logging import get_logger
from gusteau_gateway.whatsapp.models import ForwardPayload

logger = get_logger(__name__)

WEBHOOK_PATH = "/messages/webhook"


class BackendClient:
    """Forwards normalized inbound messages to the backend."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}{WEBHOOK_PATH}"
        self._timeout = timeout
        self._client = client

    @property
    def url(self) -> str:
        return self._url

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def forward(self, payload: ForwardPayload) -> None:
        """POST payload to the backend webhook.

        Raises:
            DeliveryError: On network errors or non-2xx responses.
        """
        headers = {"Content-Type": "application/json"}
        correlation_id = get_correlation_id()
        if correlation_id:
            headers[CORRELATION_ID_HEADER] = correlation_id

        try:
            response = await self._get_client().post(
                self._url, json=payload.as_json(), headers=headers
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise DeliveryError(f"backend unreachable: {type(e).__name__}") from e

        if not response.is_success:
            raise DeliveryError(
                f"backend rejected message: HTTP {response.status_code}",
                status_code=response.status_code,
            )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
