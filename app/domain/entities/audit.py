from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal, Mapping


AuditEventType = Literal[
    "payment_approved",
    "payment_cancelled",
    "subscription_authorized",
    "subscription_cancelled",
]


@dataclass(frozen=True)
class SubscriptionAuditEntry:
    user_id: str
    event_type: AuditEventType
    external_id: str
    status: str
    raw_payload: dict[str, Any]
    source: str
    created_at: datetime


def is_repeated_event(latest: Mapping[str, Any] | None, entry: SubscriptionAuditEntry) -> bool:
    """Reentrega quando o ultimo evento do mesmo recurso tem o mesmo tipo e status."""
    if latest is None:
        return False
    return latest["event_type"] == entry.event_type and latest["status"] == entry.status
