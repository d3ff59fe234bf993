"""
Unit tests for Pydantic Settings configuration.

Settings are built with ``_env_file=None`` so a developer's .env does not
leak into the assertions.
"""

from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from app.config.settings import Settings


def _settings(**values):
    return Settings(_env_file=None, **values)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("ENVIRONMENT", "JWT_SECRET", "JWKS_URL", "STRIPE_SECRET_KEY",
                 "STRIPE_WEBHOOK_SECRET", "QUOTA_TIMEZONE", "REQUIRE_CONNECTED_PLATFORMS"):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    """Tests for Settings configuration."""

    def test_defaults(self):
        settings = _settings()

        assert settings.quota_timezone == "UTC"
        assert settings.require_connected_platforms is True
        assert settings.jwt_audience == "authenticated"
        assert "http://localhost:5173" in settings.allowed_origins

    def test_quota_zone(self):
        settings = _settings(quota_timezone="Europe/Lisbon")
        assert settings.quota_zone == ZoneInfo("Europe/Lisbon")

    def test_unknown_timezone_rejected(self):
        with pytest.raises(ValidationError, match="QUOTA_TIMEZONE"):
            _settings(quota_timezone="Mars/Olympus_Mons")

    def test_environment_flags(self):
        settings = _settings(environment="Production", stripe_secret_key="sk",
                             stripe_webhook_secret="whsec", jwt_secret="secret")
        assert settings.is_production is True

    def test_production_requires_stripe(self):
        with pytest.raises(ValidationError, match="STRIPE_SECRET_KEY"):
            _settings(environment="production", jwt_secret="secret")

    def test_production_requires_jwt_verification(self):
        with pytest.raises(ValidationError, match="JWT_SECRET or JWKS_URL"):
            _settings(environment="production", stripe_secret_key="sk", stripe_webhook_secret="whsec")

    def test_production_accepts_jwks_only(self):
        settings = _settings(
            environment="production",
            stripe_secret_key="sk",
            stripe_webhook_secret="whsec",
            jwks_url="https://id.example.com/.well-known/jwks.json",
        )
        assert settings.jwt_secret is None

    def test_env_vars_are_read(self, monkeypatch):
        monkeypatch.setenv("REQUIRE_CONNECTED_PLATFORMS", "false")
        monkeypatch.setenv("QUOTA_TIMEZONE", "America/Sao_Paulo")

        settings = _settings()

        assert settings.require_connected_platforms is False
        assert settings.quota_timezone == "America/Sao_Paulo"
