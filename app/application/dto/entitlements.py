from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class EntitlementStatusOutput:
    user_id: str
    plan_type: str
    subscription_status: str
    subscription_expires_at: datetime | None
    is_premium: bool
    is_trial_active: bool
    is_trial_expired: bool
    days_left_in_trial: int


@dataclass(frozen=True)
class EntitlementCheckOutput:
    user_id: str
    allowed: bool
    reason: str | None
    trial_expired: bool
