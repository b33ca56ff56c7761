from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Union


NotificationKind = Literal["payment", "subscription_preapproval"]


@dataclass(frozen=True)
class PaymentNotification:
    resource_id: str
    kind: Literal["payment"] = "payment"


@dataclass(frozen=True)
class PreapprovalNotification:
    resource_id: str
    kind: Literal["subscription_preapproval"] = "subscription_preapproval"


@dataclass(frozen=True)
class UnsupportedNotification:
    resource_id: str
    raw_type: str


WebhookNotification = Union[PaymentNotification, PreapprovalNotification, UnsupportedNotification]


@dataclass(frozen=True)
class ProviderResource:
    """Estado de um pagamento ou preapproval consultado no provedor."""

    kind: NotificationKind
    resource_id: str
    status: str
    external_reference: str | None
    raw: dict[str, Any]
