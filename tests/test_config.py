from __future__ import annotations

import pytest

from app.shared.config import build_webhook_url, get_settings


def test_build_webhook_url_strips_trailing_slash():
    assert build_webhook_url("https://api.growing.app/") == "https://api.growing.app/v1/billing/webhook"


def test_checkout_urls_default_to_webhook_url(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PUBLIC_API_BASE_URL", "https://api.growing.app/")
    for name in ("CHECKOUT_SUCCESS_URL", "CHECKOUT_FAILURE_URL", "CHECKOUT_PENDING_URL"):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.webhook_url == "https://api.growing.app/v1/billing/webhook"
    assert settings.checkout_success_url == f"{settings.webhook_url}?status=success"
    assert settings.checkout_failure_url == f"{settings.webhook_url}?status=failure"
    assert settings.checkout_pending_url == f"{settings.webhook_url}?status=pending"
