from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal

from dotenv import load_dotenv


load_dotenv()


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def build_webhook_url(public_api_base_url: str) -> str:
    return f"{public_api_base_url.rstrip('/')}/v1/billing/webhook"


@dataclass(frozen=True)
class Settings:
    app_env: str
    log_level: str
    postgres_dsn: str
    public_api_base_url: str
    supabase_jwt_secret: str
    supabase_jwt_audience: str
    mercado_pago_access_token: str
    mercado_pago_api_base: str
    mercado_pago_webhook_secret: str
    mercado_pago_timeout_seconds: float
    mercado_pago_max_retries: int
    webhook_tolerance_seconds: int
    cron_secret_token: str
    subscription_base_price: Decimal
    subscription_currency: str
    subscription_item_title: str
    subscription_item_description: str
    checkout_success_url: str
    checkout_failure_url: str
    checkout_pending_url: str
    ai_gateway_url: str
    ai_gateway_api_key: str
    ai_gateway_timeout_seconds: float
    ai_gateway_max_retries: int
    rate_limit_max_requests: int
    rate_limit_window_seconds: int

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def webhook_url(self) -> str:
        return build_webhook_url(self.public_api_base_url)


def get_settings() -> Settings:
    public_api_base_url = _env("PUBLIC_API_BASE_URL", "http://localhost:8000")
    webhook_url = build_webhook_url(public_api_base_url)
    return Settings(
        app_env=(_env("APP_ENV", "production") or "production").strip().lower(),
        log_level=_env("LOG_LEVEL", "INFO"),
        postgres_dsn=_env("POSTGRES_DSN", ""),
        public_api_base_url=public_api_base_url,
        supabase_jwt_secret=_env("SUPABASE_JWT_SECRET", ""),
        supabase_jwt_audience=_env("SUPABASE_JWT_AUDIENCE", "authenticated"),
        mercado_pago_access_token=_env("MERCADO_PAGO_ACCESS_TOKEN", ""),
        mercado_pago_api_base=_env("MERCADO_PAGO_API_BASE", "https://api.mercadopago.com"),
        mercado_pago_webhook_secret=_env("MERCADO_PAGO_WEBHOOK_SECRET", ""),
        mercado_pago_timeout_seconds=float(_env("MERCADO_PAGO_TIMEOUT_SECONDS", "10")),
        mercado_pago_max_retries=int(_env("MERCADO_PAGO_MAX_RETRIES", "3")),
        webhook_tolerance_seconds=int(_env("WEBHOOK_TOLERANCE_SECONDS", "300")),
        cron_secret_token=_env("CRON_SECRET_TOKEN", ""),
        subscription_base_price=Decimal(_env("SUBSCRIPTION_BASE_PRICE", "12.50")),
        subscription_currency=_env("SUBSCRIPTION_CURRENCY", "BRL"),
        subscription_item_title=_env("SUBSCRIPTION_ITEM_TITLE", "Plano Premium - Mensal"),
        subscription_item_description=_env(
            "SUBSCRIPTION_ITEM_DESCRIPTION",
            "Acesso completo a todos os recursos da plataforma",
        ),
        checkout_success_url=_env("CHECKOUT_SUCCESS_URL", f"{webhook_url}?status=success"),
        checkout_failure_url=_env("CHECKOUT_FAILURE_URL", f"{webhook_url}?status=failure"),
        checkout_pending_url=_env("CHECKOUT_PENDING_URL", f"{webhook_url}?status=pending"),
        ai_gateway_url=_env("AI_GATEWAY_URL", ""),
        ai_gateway_api_key=_env("AI_GATEWAY_API_KEY", ""),
        ai_gateway_timeout_seconds=float(_env("AI_GATEWAY_TIMEOUT_SECONDS", "30")),
        ai_gateway_max_retries=int(_env("AI_GATEWAY_MAX_RETRIES", "2")),
        rate_limit_max_requests=int(_env("RATE_LIMIT_MAX_REQUESTS", "5")),
        rate_limit_window_seconds=int(_env("RATE_LIMIT_WINDOW_SECONDS", "60")),
    )
