from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import Any
from urllib.parse import quote
from uuid import uuid4

import httpx

from app.application.dto.billing import CheckoutPreferenceRequest, CheckoutPreferenceResult
from app.application.ports.payment_provider_port import PaymentProviderPort
from app.domain.entities.payment_event import NotificationKind, ProviderResource
from app.domain.exceptions import PaymentProviderError


logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


@dataclass(frozen=True)
class MercadoPagoClientSettings:
    access_token: str
    api_base: str
    timeout_seconds: float
    max_retries: int


class MercadoPagoClient(PaymentProviderPort):
    def __init__(
        self,
        settings: MercadoPagoClientSettings,
        *,
        transport: httpx.BaseTransport | None = None,
    ):
        self._settings = settings
        self._transport = transport

    def create_checkout_preference(self, request: CheckoutPreferenceRequest) -> CheckoutPreferenceResult:
        body = {
            "items": [
                {
                    "title": request.title,
                    "description": request.description,
                    "quantity": 1,
                    "unit_price": float(request.amount),
                    "currency_id": request.currency,
                }
            ],
            "payer": {"email": request.payer_email},
            "back_urls": {
                "success": request.success_url,
                "failure": request.failure_url,
                "pending": request.pending_url,
            },
            "auto_return": "approved",
            "external_reference": request.user_id,
            "notification_url": request.notification_url,
        }
        # One key per logical request so retried POSTs never create a second preference.
        payload = self._request(
            "POST",
            "/checkout/preferences",
            json=body,
            headers={"X-Idempotency-Key": str(uuid4())},
        )

        preference_id = payload.get("id")
        init_point = payload.get("init_point")
        if not preference_id or not init_point:
            raise PaymentProviderError("Mercado Pago preference response is incomplete.")
        return CheckoutPreferenceResult(id=str(preference_id), init_point=str(init_point))

    def get_payment(self, *, payment_id: str) -> ProviderResource:
        payload = self._request("GET", f"/v1/payments/{quote(payment_id, safe='')}")
        return _to_resource("payment", payment_id, payload)

    def get_preapproval(self, *, preapproval_id: str) -> ProviderResource:
        payload = self._request("GET", f"/preapproval/{quote(preapproval_id, safe='')}")
        return _to_resource("subscription_preapproval", preapproval_id, payload)

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        attempts = max(1, self._settings.max_retries)
        delay = 0.25
        last_exc: Exception | None = None
        request_headers = {"Authorization": f"Bearer {self._settings.access_token}"}
        if headers:
            request_headers.update(headers)

        for attempt in range(1, attempts + 1):
            try:
                with httpx.Client(
                    base_url=self._settings.api_base,
                    timeout=self._settings.timeout_seconds,
                    transport=self._transport,
                ) as client:
                    response = client.request(method, path, json=json, headers=request_headers)

                if response.status_code in _RETRYABLE_STATUS_CODES:
                    raise httpx.HTTPStatusError(
                        f"Mercado Pago returned {response.status_code}",
                        request=response.request,
                        response=response,
                    )
                if response.is_error:
                    logger.error(
                        "mercado_pago_client: request_rejected method=%s path=%s status=%s",
                        method,
                        path,
                        response.status_code,
                    )
                    raise PaymentProviderError(f"Mercado Pago rejected the request ({response.status_code}).")

                payload = response.json()
                if not isinstance(payload, dict):
                    raise PaymentProviderError("Mercado Pago returned an unexpected payload.")
                return payload
            except (httpx.HTTPError, ValueError) as exc:
                last_exc = exc
                if attempt == attempts:
                    break
                logger.warning(
                    "mercado_pago_client: retry attempt=%s/%s method=%s path=%s error=%s",
                    attempt,
                    attempts,
                    method,
                    path,
                    exc,
                )
                time.sleep(delay)
                delay *= 2

        logger.error(
            "mercado_pago_client: request_failed method=%s path=%s error=%s",
            method,
            path,
            last_exc,
        )
        raise PaymentProviderError("Payment provider is unavailable. Try again later.") from last_exc


def _to_resource(kind: NotificationKind, resource_id: str, payload: dict[str, Any]) -> ProviderResource:
    status = payload.get("status")
    if not status:
        raise PaymentProviderError(f"Mercado Pago {kind} {resource_id} has no status.")
    external_reference = payload.get("external_reference")
    return ProviderResource(
        kind=kind,
        resource_id=str(payload.get("id") or resource_id),
        status=str(status),
        external_reference=str(external_reference) if external_reference else None,
        raw=payload,
    )
