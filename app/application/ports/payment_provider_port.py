from __future__ import annotations

from typing import Protocol

from app.application.dto.billing import CheckoutPreferenceRequest, CheckoutPreferenceResult
from app.domain.entities.payment_event import ProviderResource


class PaymentProviderPort(Protocol):
    def create_checkout_preference(self, request: CheckoutPreferenceRequest) -> CheckoutPreferenceResult:
        ...

    def get_payment(self, *, payment_id: str) -> ProviderResource:
        ...

    def get_preapproval(self, *, preapproval_id: str) -> ProviderResource:
        ...
