from __future__ import annotations

from typing import Any, Mapping

from app.domain.entities.account import AccountEntitlement
from app.domain.entities.promo_code import PromoCode


def _as_str(value: Any) -> str:
    return str(value)


def map_row_to_account(row: Mapping[str, Any]) -> AccountEntitlement:
    return AccountEntitlement(
        user_id=_as_str(row["user_id"]),
        plan_type=row.get("plan_type") or "free_trial",
        trial_start=row.get("trial_start"),
        subscription_id=row.get("subscription_id"),
        subscription_status=row.get("subscription_status") or "none",
        subscription_expires_at=row.get("subscription_expires_at"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def map_row_to_promo_code(row: Mapping[str, Any]) -> PromoCode:
    return PromoCode(
        code=row["code"],
        discount_percent=int(row["discount_percent"]),
        is_active=bool(row["is_active"]),
        expires_at=row.get("expires_at"),
    )
