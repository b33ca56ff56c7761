from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from app.domain.entities.promo_code import PromoCode


MIN_CHARGE = Decimal("0.01")
_CENTS = Decimal("0.01")


@dataclass(frozen=True)
class SubscriptionQuote:
    amount: Decimal
    currency: str
    base_amount: Decimal
    promo_code: str | None
    discount_percent: int


def quote_subscription(
    *,
    base_amount: Decimal,
    currency: str,
    promo: PromoCode | None,
) -> SubscriptionQuote:
    base = base_amount.quantize(_CENTS, rounding=ROUND_HALF_UP)
    if promo is None:
        return SubscriptionQuote(
            amount=base,
            currency=currency,
            base_amount=base,
            promo_code=None,
            discount_percent=0,
        )

    discount = Decimal(promo.discount_percent) / Decimal(100)
    amount = (base * (Decimal(1) - discount)).quantize(_CENTS, rounding=ROUND_HALF_UP)
    return SubscriptionQuote(
        amount=max(amount, MIN_CHARGE),
        currency=currency,
        base_amount=base,
        promo_code=promo.code,
        discount_percent=promo.discount_percent,
    )


def normalize_promo_code(code: str | None) -> str | None:
    if code is None:
        return None
    normalized = code.strip().upper()
    return normalized or None
