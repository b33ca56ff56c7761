from __future__ import annotations

import logging

from app.application.dto.billing import (
    CheckoutConfig,
    CheckoutPreferenceRequest,
    CreateSubscriptionInput,
    CreateSubscriptionOutput,
)
from app.application.ports.accounts_port import AccountsPort, PromoCodesPort
from app.application.ports.payment_provider_port import PaymentProviderPort
from app.domain.entities.promo_code import PromoCode, is_promo_code_usable
from app.domain.exceptions import AccountNotFoundError, InvalidPromoCodeError, SubscriptionRequestError
from app.domain.services.pricing import normalize_promo_code, quote_subscription

from .common import Clock, utcnow


logger = logging.getLogger(__name__)


class CreateSubscriptionUseCase:
    def __init__(
        self,
        *,
        accounts_port: AccountsPort,
        promo_codes_port: PromoCodesPort,
        payment_provider_port: PaymentProviderPort,
        config: CheckoutConfig,
        clock: Clock = utcnow,
    ):
        self._accounts_port = accounts_port
        self._promo_codes_port = promo_codes_port
        self._payment_provider_port = payment_provider_port
        self._config = config
        self._clock = clock

    def execute(self, command: CreateSubscriptionInput) -> CreateSubscriptionOutput:
        email = command.email.strip()
        if not email or "@" not in email:
            raise SubscriptionRequestError("A valid email is required.")

        account = self._accounts_port.get_account(user_id=command.user_id)
        if account is None:
            raise AccountNotFoundError("Account not found.")

        now = self._clock()
        quote = quote_subscription(
            base_amount=self._config.base_amount,
            currency=self._config.currency,
            promo=self._resolve_promo(command.promo_code, now=now),
        )

        # The provider call must succeed before the account is touched.
        preference = self._payment_provider_port.create_checkout_preference(
            CheckoutPreferenceRequest(
                user_id=account.user_id,
                payer_email=email,
                title=self._config.item_title,
                description=self._config.item_description,
                amount=quote.amount,
                currency=quote.currency,
                success_url=self._config.success_url,
                failure_url=self._config.failure_url,
                pending_url=self._config.pending_url,
                notification_url=self._config.notification_url,
            )
        )

        self._accounts_port.mark_subscription_pending(
            user_id=account.user_id,
            subscription_id=preference.id,
            now=now,
        )
        logger.info(
            "create_subscription: preference_created user_id=%s preference_id=%s amount=%s promo=%s",
            account.user_id,
            preference.id,
            quote.amount,
            quote.promo_code,
        )
        return CreateSubscriptionOutput(
            init_point=preference.init_point,
            preference_id=preference.id,
            amount=quote.amount,
            currency=quote.currency,
        )

    def _resolve_promo(self, raw_code: str | None, *, now) -> PromoCode | None:
        code = normalize_promo_code(raw_code)
        if code is None:
            return None
        promo = self._promo_codes_port.get_promo_code(code=code)
        if promo is None or not is_promo_code_usable(promo, now=now):
            raise InvalidPromoCodeError("Promo code is invalid or expired.")
        return promo
