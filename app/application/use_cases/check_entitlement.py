from __future__ import annotations

import logging

from app.application.dto.entitlements import EntitlementCheckOutput
from app.application.ports.accounts_port import AccountsPort
from app.domain.entities.entitlements import EntitlementLevel
from app.domain.exceptions import AccountNotFoundError
from app.domain.services.entitlements import decide_entitlement
from app.domain.services.trial import evaluate

from .common import Clock, utcnow


logger = logging.getLogger(__name__)


class CheckEntitlementUseCase:
    def __init__(self, *, accounts_port: AccountsPort, clock: Clock = utcnow):
        self._accounts_port = accounts_port
        self._clock = clock

    def execute(self, *, user_id: str, level: EntitlementLevel) -> EntitlementCheckOutput:
        account = self._accounts_port.get_account(user_id=user_id)
        if account is None:
            raise AccountNotFoundError("Account not found.")

        decision = decide_entitlement(state=evaluate(account, self._clock()), level=level)
        if not decision.allowed:
            logger.info(
                "entitlement_gate: denied user_id=%s level=%s reason=%s",
                user_id,
                level,
                decision.reason,
            )
        return EntitlementCheckOutput(
            user_id=user_id,
            allowed=decision.allowed,
            reason=decision.reason,
            trial_expired=decision.trial_expired,
        )
