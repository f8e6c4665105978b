"""Tests for the backend webhook client."""

import asyncio
import json

import httpx
import pytest

from gusteau_gateway.errors import DeliveryError
from gusteau_gateway.relay.backend import BackendClient
from gusteau_gateway.whatsapp.models import ForwardPayload

PAYLOAD = ForwardPayload(
    restaurant_id="rest-42",
    external_id="5491112345678",
    customer_name="Juan",
    content="Hola",
)


def _client(handler) -> BackendClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return BackendClient("http://backend.test/", client=http)


class TestForward:
    def test_posts_payload_to_webhook(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"ok": True})

        asyncio.run(_client(handler).forward(PAYLOAD))

        assert len(seen) == 1
        assert seen[0].method == "POST"
        assert str(seen[0].url) == "http://backend.test/messages/webhook"
        assert json.loads(seen[0].content) == {
            "restaurantId": "rest-42",
            "platform": "whatsapp_js",
            "externalId": "5491112345678",
            "customerName": "Juan",
            "content": "Hola",
        }

    def test_non_success_raises_delivery_error(self):
        client = _client(lambda request: httpx.Response(500))

        with pytest.raises(DeliveryError) as exc_info:
            asyncio.run(client.forward(PAYLOAD))

        assert exc_info.value.status_code == 500

    def test_network_error_raises_delivery_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(DeliveryError, match="backend unreachable"):
            asyncio.run(_client(handler).forward(PAYLOAD))

    def test_missing_base_url_raises_delivery_error(self):
        client = BackendClient("")

        with pytest.raises(DeliveryError):
            asyncio.run(client.forward(PAYLOAD))
