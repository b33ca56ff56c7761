from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


EntitlementLevel = Literal["premium", "any"]

DenialReason = Literal["premium_required", "trial_expired"]


@dataclass(frozen=True)
class TrialState:
    is_premium: bool
    is_trial_active: bool
    is_trial_expired: bool
    days_left_in_trial: int


@dataclass(frozen=True)
class EntitlementDecision:
    allowed: bool
    reason: DenialReason | None
    trial_expired: bool
    state: TrialState
