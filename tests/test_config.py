"""Tests for environment-sourced settings."""

from pathlib import Path

from gusteau_gateway.config import load_settings

_ENV_VARS = (
    "PORT",
    "GUSTEAU_API_URL",
    "GUSTEAU_GATEWAY_URL",
    "RESTAURANT_ID",
    "GATEWAY_TOKEN",
    "DEBUG_PHONE_NUMBER",
    "STORAGE_DIR",
    "EVOLUTION_BASE_URL",
    "EVOLUTION_INSTANCE",
    "EVOLUTION_API_KEY",
    "EVOLUTION_WEBHOOK_SECRET",
    "EVOLUTION_WEBHOOK_ALLOW_UNSIGNED",
    "BACKEND_HTTP_TIMEOUT",
    "LOG_LEVEL",
)


def _clear_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestLoadSettings:
    def test_defaults(self, monkeypatch):
        _clear_env(monkeypatch)

        settings = load_settings()

        assert settings.port == 3000
        assert settings.gateway_url == "http://localhost:3000"
        assert settings.backend_url == ""
        assert settings.gateway_token == ""
        assert settings.debug_phone_number is None
        assert settings.engine_webhook_secret is None
        assert settings.allow_unsigned_webhooks is False
        assert settings.storage_dir == Path("storage")
        assert settings.backend_timeout == 10.0
        assert settings.log_level == "INFO"

    def test_reads_environment(self, monkeypatch):
        _clear_env(monkeypatch)
        monkeypatch.setenv("PORT", "8081")
        monkeypatch.setenv("GUSTEAU_API_URL", "https://api.gusteau.test/")
        monkeypatch.setenv("GUSTEAU_GATEWAY_URL", "https://wa.gusteau.test")
        monkeypatch.setenv("RESTAURANT_ID", "rest-42")
        monkeypatch.setenv("GATEWAY_TOKEN", "s3cret")
        monkeypatch.setenv("DEBUG_PHONE_NUMBER", "5491112345678")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = load_settings()

        assert settings.port == 8081
        assert settings.backend_url == "https://api.gusteau.test"
        assert settings.gateway_url == "https://wa.gusteau.test"
        assert settings.restaurant_id == "rest-42"
        assert settings.gateway_token == "s3cret"
        assert settings.debug_phone_number == "5491112345678"
        assert settings.log_level == "DEBUG"

    def test_empty_debug_filter_is_unset(self, monkeypatch):
        _clear_env(monkeypatch)
        monkeypatch.setenv("DEBUG_PHONE_NUMBER", "")

        assert load_settings().debug_phone_number is None

    def test_unsigned_webhooks_need_explicit_opt_in(self, monkeypatch):
        _clear_env(monkeypatch)
        monkeypatch.setenv("EVOLUTION_WEBHOOK_ALLOW_UNSIGNED", "true")

        assert load_settings().allow_unsigned_webhooks is True

        monkeypatch.setenv("EVOLUTION_WEBHOOK_ALLOW_UNSIGNED", "no")

        assert load_settings().allow_unsigned_webhooks is False
