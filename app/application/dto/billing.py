from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class CreateSubscriptionInput:
    user_id: str
    email: str
    promo_code: str | None


@dataclass(frozen=True)
class CreateSubscriptionOutput:
    init_point: str
    preference_id: str
    amount: Decimal
    currency: str


@dataclass(frozen=True)
class CheckoutPreferenceRequest:
    user_id: str
    payer_email: str
    title: str
    description: str
    amount: Decimal
    currency: str
    success_url: str
    failure_url: str
    pending_url: str
    notification_url: str


@dataclass(frozen=True)
class CheckoutPreferenceResult:
    id: str
    init_point: str


@dataclass(frozen=True)
class PaymentWebhookInput:
    payload: bytes
    signature: str | None
    request_id: str | None


@dataclass(frozen=True)
class PaymentWebhookOutput:
    notification_type: str
    handled: bool
    duplicate: bool = False


@dataclass(frozen=True)
class SweepExpiredSubscriptionsInput:
    cron_secret: str | None


@dataclass(frozen=True)
class SweepExpiredSubscriptionsOutput:
    expired_count: int
    trial_ending_soon_count: int


@dataclass(frozen=True)
class CheckoutConfig:
    base_amount: Decimal
    currency: str
    item_title: str
    item_description: str
    success_url: str
    failure_url: str
    pending_url: str
    notification_url: str
