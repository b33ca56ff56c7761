from __future__ import annotations

from app.application.dto.entitlements import EntitlementStatusOutput
from app.application.ports.accounts_port import AccountsPort

from .common import Clock, utcnow
from .get_entitlement_status import build_entitlement_status


class EnsureAccountUseCase:
    def __init__(self, *, accounts_port: AccountsPort, clock: Clock = utcnow):
        self._accounts_port = accounts_port
        self._clock = clock

    def execute(self, *, user_id: str) -> EntitlementStatusOutput:
        now = self._clock()
        account = self._accounts_port.create_account_if_missing(user_id=user_id, now=now)
        return build_entitlement_status(account, now=now)
