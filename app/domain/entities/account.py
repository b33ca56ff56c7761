from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal


PlanType = Literal["free_trial", "premium"]

SubscriptionStatus = Literal["none", "pending", "authorized", "cancelled"]


@dataclass(frozen=True)
class AccountEntitlement:
    user_id: str
    plan_type: PlanType
    trial_start: datetime | None
    subscription_id: str | None
    subscription_status: SubscriptionStatus
    subscription_expires_at: datetime | None
    created_at: datetime
    updated_at: datetime


def is_premium_plan(plan_type: str) -> bool:
    return plan_type == "premium"
