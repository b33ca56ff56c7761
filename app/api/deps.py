from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Header, HTTPException

from app.application.dto.billing import CheckoutConfig
from app.application.use_cases.check_entitlement import CheckEntitlementUseCase
from app.application.use_cases.create_subscription import CreateSubscriptionUseCase
from app.application.use_cases.ensure_account import EnsureAccountUseCase
from app.application.use_cases.get_entitlement_status import GetEntitlementStatusUseCase
from app.application.use_cases.process_payment_webhook import ProcessPaymentWebhookUseCase
from app.application.use_cases.run_paid_feature import RunPaidFeatureUseCase
from app.application.use_cases.sweep_expired_subscriptions import SweepExpiredSubscriptionsUseCase
from app.domain.entities.entitlements import EntitlementLevel
from app.domain.entities.user import User
from app.domain.exceptions import AccountNotFoundError
from app.infrastructure.clients.ai_gateway_client import AiGatewayClient, AiGatewayClientSettings
from app.infrastructure.clients.mercado_pago_client import (
    MercadoPagoClient,
    MercadoPagoClientSettings,
)
from app.infrastructure.db.engine import get_engine
from app.infrastructure.db.repositories.accounts_repository import SqlAccountsRepository
from app.infrastructure.db.repositories.rate_limit_repository import SqlRateLimitRepository
from app.infrastructure.security.token_service import SupabaseTokenService
from app.infrastructure.security.webhook_signature import MercadoPagoSignatureVerifier
from app.shared.config import get_settings


TRIAL_EXPIRED_MESSAGE = "Your free trial has expired. Subscribe to Premium to keep using this feature."
PREMIUM_REQUIRED_MESSAGE = "A Premium subscription is required to use this feature."


def _get_db_engine():
    settings = get_settings()
    if not settings.postgres_dsn:
        raise HTTPException(status_code=500, detail="POSTGRES_DSN is required.")
    return get_engine(settings.postgres_dsn)


def _get_accounts_repository() -> SqlAccountsRepository:
    return SqlAccountsRepository(_get_db_engine())


def _get_rate_limit_repository() -> SqlRateLimitRepository:
    return SqlRateLimitRepository(_get_db_engine())


@lru_cache(maxsize=1)
def _get_token_service() -> SupabaseTokenService:
    settings = get_settings()
    if not settings.supabase_jwt_secret:
        raise HTTPException(status_code=500, detail="SUPABASE_JWT_SECRET is required.")
    return SupabaseTokenService(
        jwt_secret=settings.supabase_jwt_secret,
        audience=settings.supabase_jwt_audience,
    )


@lru_cache(maxsize=1)
def _get_mercado_pago_client() -> MercadoPagoClient:
    settings = get_settings()
    if not settings.mercado_pago_access_token:
        raise HTTPException(status_code=500, detail="MERCADO_PAGO_ACCESS_TOKEN is required.")
    return MercadoPagoClient(
        MercadoPagoClientSettings(
            access_token=settings.mercado_pago_access_token,
            api_base=settings.mercado_pago_api_base,
            timeout_seconds=settings.mercado_pago_timeout_seconds,
            max_retries=settings.mercado_pago_max_retries,
        )
    )


def _get_signature_verifier() -> MercadoPagoSignatureVerifier:
    # An empty secret is allowed here; the verifier rejects every signed call with it.
    settings = get_settings()
    return MercadoPagoSignatureVerifier(
        secret=settings.mercado_pago_webhook_secret,
        tolerance_seconds=settings.webhook_tolerance_seconds,
    )


@lru_cache(maxsize=1)
def _get_ai_gateway_client() -> AiGatewayClient:
    settings = get_settings()
    if not settings.ai_gateway_url:
        raise HTTPException(status_code=503, detail="AI_GATEWAY_URL is not configured.")
    return AiGatewayClient(
        AiGatewayClientSettings(
            base_url=settings.ai_gateway_url,
            api_key=settings.ai_gateway_api_key,
            timeout_seconds=settings.ai_gateway_timeout_seconds,
            max_retries=settings.ai_gateway_max_retries,
        )
    )


def _get_checkout_config() -> CheckoutConfig:
    settings = get_settings()
    return CheckoutConfig(
        base_amount=settings.subscription_base_price,
        currency=settings.subscription_currency,
        item_title=settings.subscription_item_title,
        item_description=settings.subscription_item_description,
        success_url=settings.checkout_success_url,
        failure_url=settings.checkout_failure_url,
        pending_url=settings.checkout_pending_url,
        notification_url=settings.webhook_url,
    )


def get_get_entitlement_status_use_case() -> GetEntitlementStatusUseCase:
    return GetEntitlementStatusUseCase(accounts_port=_get_accounts_repository())


def get_check_entitlement_use_case() -> CheckEntitlementUseCase:
    return CheckEntitlementUseCase(accounts_port=_get_accounts_repository())


def get_ensure_account_use_case() -> EnsureAccountUseCase:
    return EnsureAccountUseCase(accounts_port=_get_accounts_repository())


def get_create_subscription_use_case() -> CreateSubscriptionUseCase:
    repository = _get_accounts_repository()
    return CreateSubscriptionUseCase(
        accounts_port=repository,
        promo_codes_port=repository,
        payment_provider_port=_get_mercado_pago_client(),
        config=_get_checkout_config(),
    )


def get_process_payment_webhook_use_case() -> ProcessPaymentWebhookUseCase:
    settings = get_settings()
    return ProcessPaymentWebhookUseCase(
        accounts_port=_get_accounts_repository(),
        payment_provider_port=_get_mercado_pago_client(),
        signature_port=_get_signature_verifier(),
        allow_test_notifications=settings.is_development,
    )


def get_sweep_expired_subscriptions_use_case() -> SweepExpiredSubscriptionsUseCase:
    settings = get_settings()
    return SweepExpiredSubscriptionsUseCase(
        accounts_port=_get_accounts_repository(),
        cron_secret=settings.cron_secret_token,
    )


def get_run_paid_feature_use_case() -> RunPaidFeatureUseCase:
    settings = get_settings()
    return RunPaidFeatureUseCase(
        ai_gateway_port=_get_ai_gateway_client(),
        rate_limit_port=_get_rate_limit_repository(),
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )


def get_current_user(
    authorization: str | None = Header(None),
) -> User:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header.")
    token = authorization.replace("Bearer ", "", 1).strip()
    if not token:
        raise HTTPException(status_code=401, detail="Missing access token.")

    token_service = _get_token_service()
    try:
        payload = token_service.decode_access_token(token=token)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    return User(id=payload.user_id, email=payload.email)


def require_entitlement(level: EntitlementLevel):
    def _dependency(
        user: User = Depends(get_current_user),
        use_case: CheckEntitlementUseCase = Depends(get_check_entitlement_use_case),
    ) -> User:
        try:
            decision = use_case.execute(user_id=user.id, level=level)
        except AccountNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

        if not decision.allowed:
            if decision.reason == "trial_expired":
                detail = {"error": TRIAL_EXPIRED_MESSAGE, "trial_expired": True}
            else:
                detail = {"error": PREMIUM_REQUIRED_MESSAGE}
                if decision.trial_expired:
                    detail["trial_expired"] = True
            raise HTTPException(status_code=403, detail=detail)
        return user

    return _dependency
