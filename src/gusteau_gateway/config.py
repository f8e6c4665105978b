"""Environment-sourced settings for the gateway process."""

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_PORT = 3000
DEFAULT_STORAGE_DIR = "storage"
DEFAULT_EVOLUTION_BASE_URL = "http://localhost:8080"
DEFAULT_EVOLUTION_INSTANCE = "gusteau"
DEFAULT_BACKEND_TIMEOUT = 10.0

_TRUTHY = {"1", "true", "yes", "on"}


def _env(name: str, default: str | None = None) -> str | None:
    """Read an env var, treating empty strings as unset."""
    value = os.environ.get(name, "").strip()
    return value or default


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration. One instance per process."""

    port: int
    backend_url: str
    gateway_url: str
    restaurant_id: str
    gateway_token: str
    debug_phone_number: str | None
    storage_dir: Path
    evolution_base_url: str
    evolution_instance: str
    evolution_api_key: str
    engine_webhook_secret: str | None
    backend_timeout: float
    log_level: str
    # Local development only: accept engine callbacks without a configured secret
    allow_unsigned_webhooks: bool = False


def load_settings() -> Settings:
    """Build Settings from the environment.

    Env vars:
    - PORT: listen port (default: 3000)
    - GUSTEAU_API_URL: backend base URL (forwarded messages go to /messages/webhook)
    - GUSTEAU_GATEWAY_URL: externally reachable URL of this gateway (logging only)
    - RESTAURANT_ID: tenant id attached to every forwarded message
    - GATEWAY_TOKEN: shared secret for Bearer auth on /send and /chat/state
    - DEBUG_PHONE_NUMBER: optional sender filter substring
    - STORAGE_DIR: session storage root (default: ./storage)
    - EVOLUTION_BASE_URL, EVOLUTION_INSTANCE, EVOLUTION_API_KEY: session engine
    - EVOLUTION_WEBHOOK_SECRET: X-Webhook-Secret expected on engine callbacks.
      Required: without it every callback is rejected, unless
    - EVOLUTION_WEBHOOK_ALLOW_UNSIGNED: "true" to accept unsigned callbacks (local dev)
    - BACKEND_HTTP_TIMEOUT: seconds (default: 10)
    - LOG_LEVEL: default INFO
    """
    port = int(_env("PORT", str(DEFAULT_PORT)))

    return Settings(
        port=port,
        backend_url=(_env("GUSTEAU_API_URL", "") or "").rstrip("/"),
        gateway_url=(_env("GUSTEAU_GATEWAY_URL") or f"http://localhost:{port}").rstrip("/"),
        restaurant_id=_env("RESTAURANT_ID", "") or "",
        gateway_token=_env("GATEWAY_TOKEN", "") or "",
        debug_phone_number=_env("DEBUG_PHONE_NUMBER"),
        storage_dir=Path(_env("STORAGE_DIR", DEFAULT_STORAGE_DIR)),
        evolution_base_url=(
            _env("EVOLUTION_BASE_URL", DEFAULT_EVOLUTION_BASE_URL) or ""
        ).rstrip("/"),
        evolution_instance=_env("EVOLUTION_INSTANCE", DEFAULT_EVOLUTION_INSTANCE) or "",
        evolution_api_key=_env("EVOLUTION_API_KEY", "") or "",
        engine_webhook_secret=_env("EVOLUTION_WEBHOOK_SECRET"),
        backend_timeout=float(_env("BACKEND_HTTP_TIMEOUT", str(DEFAULT_BACKEND_TIMEOUT))),
        log_level=(_env("LOG_LEVEL", "INFO") or "INFO").upper(),
        allow_unsigned_webhooks=(_env("EVOLUTION_WEBHOOK_ALLOW_UNSIGNED", "") or "").lower()
        in _TRUTHY,
    )
