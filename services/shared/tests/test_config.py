"""Tests for environment-driven settings."""

import pytest

from voicecanvas_shared.config import Settings, get_settings, refresh_settings


@pytest.mark.unit
def test_defaults(monkeypatch):
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    monkeypatch.delenv("APP_URL", raising=False)

    settings = Settings()

    assert settings.environment == "development"
    assert settings.is_development
    assert not settings.is_production
    assert settings.app_url == "http://localhost:3000"
    assert settings.auth.session_cookie_name == "vc_session"
    assert settings.speech.minimax_timeout_seconds == 15.0
    assert settings.speech.polly_timeout_seconds == 10.0


@pytest.mark.unit
def test_reads_grouped_environment(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("APP_URL", "https://voicecanvas.example")
    monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db/voicecanvas")
    monkeypatch.setenv("AUTH_SESSION_SECRET", "s3cret")
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_1")
    monkeypatch.setenv("STRIPE_YEARLY_PRICE_ID", "price_y")
    monkeypatch.setenv("STRIPE_10K_PRICE_ID", "price_10k")
    monkeypatch.setenv("RESEND_API_KEY", "re_123")
    monkeypatch.setenv("EMAIL_FROM", "hello@voicecanvas.example")
    monkeypatch.setenv("MINIMAX_GROUP_ID", "group-9")
    monkeypatch.setenv("AWS_REGION", "eu-west-1")

    settings = refresh_settings()

    assert settings.is_production
    assert settings.app_url == "https://voicecanvas.example"
    assert settings.database.url == "postgres://u:p@db/voicecanvas"
    assert settings.auth.session_secret == "s3cret"
    assert settings.stripe.webhook_secret == "whsec_1"
    assert settings.stripe.yearly_price_id == "price_y"
    assert settings.stripe.price_10k_id == "price_10k"
    assert settings.email.resend_api_key == "re_123"
    assert settings.email.email_from == "hello@voicecanvas.example"
    assert settings.speech.minimax_group_id == "group-9"
    assert settings.speech.aws_region == "eu-west-1"


@pytest.mark.unit
def test_settings_are_cached_until_refreshed(monkeypatch):
    monkeypatch.setenv("APP_URL", "https://one.example")
    first = get_settings()
    monkeypatch.setenv("APP_URL", "https://two.example")

    assert get_settings() is first
    assert refresh_settings().app_url == "https://two.example"
