from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class PromoCode:
    code: str
    discount_percent: int
    is_active: bool
    expires_at: datetime | None


def is_promo_code_usable(promo: PromoCode, *, now: datetime) -> bool:
    if not promo.is_active:
        return False
    if promo.expires_at is not None and promo.expires_at <= now:
        return False
    return 0 < promo.discount_percent <= 100
