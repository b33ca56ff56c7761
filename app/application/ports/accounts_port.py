from __future__ import annotations

from datetime import datetime
from typing import Protocol

from app.domain.entities.account import AccountEntitlement
from app.domain.entities.audit import SubscriptionAuditEntry
from app.domain.entities.promo_code import PromoCode
from app.domain.services.subscription_transitions import SubscriptionTransition


class AccountsPort(Protocol):
    def get_account(self, *, user_id: str) -> AccountEntitlement | None:
        ...

    def create_account_if_missing(self, *, user_id: str, now: datetime) -> AccountEntitlement:
        ...

    def mark_subscription_pending(self, *, user_id: str, subscription_id: str, now: datetime) -> None:
        ...

    def apply_subscription_transition(
        self,
        *,
        user_id: str,
        transition: SubscriptionTransition,
        audit_entry: SubscriptionAuditEntry,
        now: datetime,
    ) -> bool:
        """Aplica a transicao e grava a auditoria na mesma transacao.

        Retorna False quando o ultimo evento do mesmo recurso ja tinha esse
        tipo e status (reentrega); mudancas de status sempre sao aplicadas.
        """
        ...

    def downgrade_expired_premium(self, *, now: datetime) -> list[str]:
        ...

    def count_trials_started_between(self, *, after: datetime, until: datetime) -> int:
        """Conta contas free_trial com after < trial_start <= until."""
        ...


class PromoCodesPort(Protocol):
    def get_promo_code(self, *, code: str) -> PromoCode | None:
        ...
