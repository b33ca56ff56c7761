from __future__ import annotations

from app.domain.entities.entitlements import EntitlementDecision, EntitlementLevel, TrialState


def decide_entitlement(*, state: TrialState, level: EntitlementLevel) -> EntitlementDecision:
    if state.is_premium:
        return EntitlementDecision(allowed=True, reason=None, trial_expired=False, state=state)

    if level == "premium":
        return EntitlementDecision(
            allowed=False,
            reason="premium_required",
            trial_expired=state.is_trial_expired,
            state=state,
        )

    if state.is_trial_expired:
        return EntitlementDecision(allowed=False, reason="trial_expired", trial_expired=True, state=state)

    return EntitlementDecision(allowed=True, reason=None, trial_expired=False, state=state)
