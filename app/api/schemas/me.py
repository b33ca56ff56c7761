from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class EntitlementStatusResponse(BaseModel):
    user_id: str
    plan_type: str
    subscription_status: str
    subscription_expires_at: datetime | None
    is_premium: bool
    is_trial_active: bool
    is_trial_expired: bool
    days_left_in_trial: int
