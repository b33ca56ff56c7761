from __future__ import annotations

from datetime import datetime

from app.application.dto.entitlements import EntitlementStatusOutput
from app.application.ports.accounts_port import AccountsPort
from app.domain.entities.account import AccountEntitlement
from app.domain.exceptions import AccountNotFoundError
from app.domain.services.trial import evaluate

from .common import Clock, utcnow


class GetEntitlementStatusUseCase:
    def __init__(self, *, accounts_port: AccountsPort, clock: Clock = utcnow):
        self._accounts_port = accounts_port
        self._clock = clock

    def execute(self, *, user_id: str) -> EntitlementStatusOutput:
        account = self._accounts_port.get_account(user_id=user_id)
        if account is None:
            raise AccountNotFoundError("Account not found.")
        return build_entitlement_status(account, now=self._clock())


def build_entitlement_status(account: AccountEntitlement, *, now: datetime) -> EntitlementStatusOutput:
    state = evaluate(account, now)
    return EntitlementStatusOutput(
        user_id=account.user_id,
        plan_type=account.plan_type,
        subscription_status=account.subscription_status,
        subscription_expires_at=account.subscription_expires_at,
        is_premium=state.is_premium,
        is_trial_active=state.is_trial_active,
        is_trial_expired=state.is_trial_expired,
        days_left_in_trial=state.days_left_in_trial,
    )
