from __future__ import annotations

import math
from datetime import datetime, timedelta

from app.domain.entities.account import AccountEntitlement, is_premium_plan
from app.domain.entities.entitlements import TrialState


TRIAL_DAYS = 30

_ONE_DAY_SECONDS = 24 * 60 * 60


def evaluate(record: AccountEntitlement, now: datetime) -> TrialState:
    """Deriva o estado de trial/premium a partir do registro e do instante `now`.

    Premium e decidido apenas pelo `plan_type`; a expiracao do premium fica a
    cargo do sweeper. Sem `trial_start` o trial conta a partir de `now`.
    """
    if is_premium_plan(record.plan_type):
        return TrialState(
            is_premium=True,
            is_trial_active=False,
            is_trial_expired=False,
            days_left_in_trial=0,
        )

    days_elapsed = _days_elapsed(record.trial_start or now, now)
    is_trial_expired = days_elapsed >= TRIAL_DAYS
    days_left = max(0, TRIAL_DAYS - days_elapsed)
    return TrialState(
        is_premium=False,
        is_trial_active=not is_trial_expired and days_left > 0,
        is_trial_expired=is_trial_expired,
        days_left_in_trial=days_left,
    )


def trial_ends_at(trial_start: datetime) -> datetime:
    return trial_start + timedelta(days=TRIAL_DAYS)


def trial_start_window(days_left: int, now: datetime) -> tuple[datetime, datetime]:
    """Intervalo (after, until] de `trial_start` cujo trial termina em `days_left` dias.

    Dias restantes arredondam para cima: termina em (days_left - 1, days_left] dias.
    """
    until = now - timedelta(days=TRIAL_DAYS - days_left)
    return until - timedelta(days=1), until


def _days_elapsed(trial_start: datetime, now: datetime) -> int:
    elapsed = (now - trial_start).total_seconds()
    return math.floor(elapsed / _ONE_DAY_SECONDS)
