from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime

from app.domain.entities.account import PlanType, SubscriptionStatus
from app.domain.entities.audit import AuditEventType
from app.domain.entities.payment_event import ProviderResource


PAYMENT_APPROVED_STATUSES = frozenset({"approved"})
PAYMENT_CANCELLED_STATUSES = frozenset({"rejected", "cancelled"})
PREAPPROVAL_AUTHORIZED_STATUSES = frozenset({"authorized"})
PREAPPROVAL_CANCELLED_STATUSES = frozenset({"cancelled", "paused"})


@dataclass(frozen=True)
class SubscriptionTransition:
    """Estado alvo completo aplicado ao registro de uma vez.

    `plan_type` e `subscription_expires_at` ficam `None` quando a transicao
    nao deve tocar nesses campos (cancelamento preserva o ciclo atual).
    """

    event_type: AuditEventType
    subscription_status: SubscriptionStatus
    plan_type: PlanType | None
    subscription_expires_at: datetime | None


def resolve_transition(resource: ProviderResource, *, now: datetime) -> SubscriptionTransition | None:
    status = resource.status.lower()

    if resource.kind == "payment":
        if status in PAYMENT_APPROVED_STATUSES:
            return _activation("payment_approved", now=now)
        if status in PAYMENT_CANCELLED_STATUSES:
            return _cancellation("payment_cancelled")
        return None

    if resource.kind == "subscription_preapproval":
        if status in PREAPPROVAL_AUTHORIZED_STATUSES:
            return _activation("subscription_authorized", now=now)
        if status in PREAPPROVAL_CANCELLED_STATUSES:
            return _cancellation("subscription_cancelled")
        return None

    raise ValueError(f"Unknown provider resource kind: {resource.kind}")


def add_one_month(value: datetime) -> datetime:
    year = value.year + (1 if value.month == 12 else 0)
    month = 1 if value.month == 12 else value.month + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _activation(event_type: AuditEventType, *, now: datetime) -> SubscriptionTransition:
    return SubscriptionTransition(
        event_type=event_type,
        subscription_status="authorized",
        plan_type="premium",
        subscription_expires_at=add_one_month(now),
    )


def _cancellation(event_type: AuditEventType) -> SubscriptionTransition:
    return SubscriptionTransition(
        event_type=event_type,
        subscription_status="cancelled",
        plan_type=None,
        subscription_expires_at=None,
    )
