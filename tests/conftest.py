from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from app.domain.entities.account import AccountEntitlement
from app.domain.entities.audit import SubscriptionAuditEntry, is_repeated_event
from app.domain.entities.promo_code import PromoCode
from app.domain.exceptions import AccountNotFoundError


NOW = datetime(2026, 3, 15, 12, 0, 0, tzinfo=timezone.utc)

USER_ID = "5f0c7c4e-2b59-4a53-9d0e-6f1a0f5c2a11"


class FakeAccountsPort:
    def __init__(self):
        self.accounts: dict[str, AccountEntitlement] = {}
        self.audit_log: list[SubscriptionAuditEntry] = []
        self.pending_calls: list[tuple[str, str]] = []

    def add(self, account: AccountEntitlement) -> AccountEntitlement:
        self.accounts[account.user_id] = account
        return account

    def get_account(self, *, user_id: str) -> AccountEntitlement | None:
        return self.accounts.get(user_id)

    def create_account_if_missing(self, *, user_id: str, now: datetime) -> AccountEntitlement:
        if user_id not in self.accounts:
            self.accounts[user_id] = make_account(user_id=user_id, trial_start=now, created_at=now)
        return self.accounts[user_id]

    def mark_subscription_pending(self, *, user_id: str, subscription_id: str, now: datetime) -> None:
        account = self.accounts.get(user_id)
        if account is None:
            raise AccountNotFoundError("Account not found.")
        self.pending_calls.append((user_id, subscription_id))
        self.accounts[user_id] = replace(
            account,
            subscription_id=subscription_id,
            subscription_status="pending",
            updated_at=now,
        )

    def apply_subscription_transition(self, *, user_id, transition, audit_entry, now) -> bool:
        same_resource = [e for e in self.audit_log if e.external_id == audit_entry.external_id]
        latest = same_resource[-1] if same_resource else None
        if latest is not None and is_repeated_event(
            {"event_type": latest.event_type, "status": latest.status}, audit_entry
        ):
            return False
        account = self.accounts.get(user_id)
        if account is None:
            raise AccountNotFoundError("Account not found.")
        self.audit_log.append(audit_entry)
        self.accounts[user_id] = replace(
            account,
            plan_type=transition.plan_type or account.plan_type,
            subscription_status=transition.subscription_status,
            subscription_expires_at=transition.subscription_expires_at or account.subscription_expires_at,
            updated_at=now,
        )
        return True

    def downgrade_expired_premium(self, *, now: datetime) -> list[str]:
        downgraded = []
        for user_id, account in list(self.accounts.items()):
            if (
                account.plan_type == "premium"
                and account.subscription_expires_at is not None
                and account.subscription_expires_at < now
            ):
                self.accounts[user_id] = replace(
                    account,
                    plan_type="free_trial",
                    subscription_status="cancelled",
                    updated_at=now,
                )
                downgraded.append(user_id)
        return downgraded

    def count_trials_started_between(self, *, after: datetime, until: datetime) -> int:
        return sum(
            1
            for account in self.accounts.values()
            if account.plan_type == "free_trial"
            and account.trial_start is not None
            and after < account.trial_start <= until
        )


class FakePromoCodesPort:
    def __init__(self, promo_codes: list[PromoCode] | None = None):
        self.promo_codes = {promo.code: promo for promo in (promo_codes or [])}

    def get_promo_code(self, *, code: str) -> PromoCode | None:
        return self.promo_codes.get(code)


def make_account(
    *,
    user_id: str = USER_ID,
    plan_type: str = "free_trial",
    trial_start: datetime | None = NOW,
    subscription_id: str | None = None,
    subscription_status: str = "none",
    subscription_expires_at: datetime | None = None,
    created_at: datetime = NOW,
) -> AccountEntitlement:
    return AccountEntitlement(
        user_id=user_id,
        plan_type=plan_type,
        trial_start=trial_start,
        subscription_id=subscription_id,
        subscription_status=subscription_status,
        subscription_expires_at=subscription_expires_at,
        created_at=created_at,
        updated_at=created_at,
    )


@pytest.fixture
def accounts_port() -> FakeAccountsPort:
    return FakeAccountsPort()
