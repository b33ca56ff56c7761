from __future__ import annotations

import hashlib
import hmac
import logging
from datetime import datetime

from app.application.ports.webhook_signature_port import WebhookSignaturePort
from app.domain.exceptions import WebhookAuthenticationError, WebhookConfigurationError


logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE_SECONDS = 300


def parse_signature_header(header: str) -> dict[str, str]:
    """Converte `ts=...,v1=...` em dict; partes sem `=` tornam o cabecalho invalido."""
    fields: dict[str, str] = {}
    for part in header.split(","):
        part = part.strip()
        if not part:
            continue
        key, sep, value = part.partition("=")
        if not sep or not key.strip() or not value.strip():
            raise WebhookAuthenticationError("Malformed signature header.")
        fields[key.strip()] = value.strip()
    return fields


def build_signature_manifest(*, resource_id: str, request_id: str, ts: str) -> str:
    return f"id:{resource_id};request-id:{request_id};ts:{ts};"


def compute_signature(*, secret: str, manifest: str) -> str:
    return hmac.new(secret.encode("utf-8"), manifest.encode("utf-8"), hashlib.sha256).hexdigest()


class MercadoPagoSignatureVerifier(WebhookSignaturePort):
    def __init__(self, *, secret: str, tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS):
        self._secret = secret
        self._tolerance_seconds = tolerance_seconds

    def check_headers(self, *, signature_header: str | None, request_id: str | None) -> None:
        if not self._secret:
            logger.error("webhook_signature: secret_not_configured")
            raise WebhookConfigurationError("Webhook secret is not configured.")

        if not signature_header or not request_id:
            logger.warning("webhook_signature: missing_headers")
            raise WebhookAuthenticationError("Missing signature headers.")

    def verify(
        self,
        *,
        signature_header: str | None,
        request_id: str | None,
        resource_id: str,
        now: datetime,
    ) -> None:
        self.check_headers(signature_header=signature_header, request_id=request_id)

        fields = parse_signature_header(signature_header)
        ts = fields.get("ts")
        v1 = fields.get("v1")
        if not ts or not v1:
            logger.warning("webhook_signature: malformed_header resource_id=%s", resource_id)
            raise WebhookAuthenticationError("Malformed signature header.")

        try:
            ts_value = int(ts)
        except ValueError as exc:
            raise WebhookAuthenticationError("Malformed signature timestamp.") from exc

        if abs(now.timestamp() - ts_value) > self._tolerance_seconds:
            logger.warning(
                "webhook_signature: stale_timestamp resource_id=%s ts=%s",
                resource_id,
                ts_value,
            )
            raise WebhookAuthenticationError("Webhook timestamp outside the allowed window.")

        expected = compute_signature(
            secret=self._secret,
            manifest=build_signature_manifest(resource_id=resource_id, request_id=request_id, ts=ts),
        )
        if not hmac.compare_digest(expected, v1.lower()):
            logger.warning("webhook_signature: signature_mismatch resource_id=%s", resource_id)
            raise WebhookAuthenticationError("Invalid webhook signature.")
