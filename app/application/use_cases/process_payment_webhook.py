from __future__ import annotations

import json
import logging
from typing import Any

from app.application.dto.billing import PaymentWebhookInput, PaymentWebhookOutput
from app.application.ports.accounts_port import AccountsPort
from app.application.ports.payment_provider_port import PaymentProviderPort
from app.application.ports.webhook_signature_port import WebhookSignaturePort
from app.domain.entities.audit import SubscriptionAuditEntry
from app.domain.entities.payment_event import (
    PaymentNotification,
    PreapprovalNotification,
    ProviderResource,
    UnsupportedNotification,
    WebhookNotification,
)
from app.domain.exceptions import AccountNotFoundError, WebhookPayloadError
from app.domain.services.subscription_transitions import resolve_transition
from app.domain.services.webhook_notifications import (
    extract_resource_id,
    parse_user_reference,
    parse_webhook_notification,
)

from .common import Clock, utcnow


logger = logging.getLogger(__name__)

# Resource id Mercado Pago uses for simulator notifications.
TEST_NOTIFICATION_ID = "123456"

WEBHOOK_SOURCE = "mercado_pago_webhook"


class ProcessPaymentWebhookUseCase:
    def __init__(
        self,
        *,
        accounts_port: AccountsPort,
        payment_provider_port: PaymentProviderPort,
        signature_port: WebhookSignaturePort,
        allow_test_notifications: bool = False,
        clock: Clock = utcnow,
    ):
        self._accounts_port = accounts_port
        self._payment_provider_port = payment_provider_port
        self._signature_port = signature_port
        self._allow_test_notifications = allow_test_notifications
        self._clock = clock

    def execute(self, command: PaymentWebhookInput) -> PaymentWebhookOutput:
        if self._allow_test_notifications and _is_test_notification(command.payload):
            logger.warning("payment_webhook: test_notification_acknowledged resource_id=%s", TEST_NOTIFICATION_ID)
            return PaymentWebhookOutput(notification_type="test", handled=False)

        self._signature_port.check_headers(signature_header=command.signature, request_id=command.request_id)

        payload = _decode_payload(command.payload)
        resource_id = extract_resource_id(payload)

        now = self._clock()
        self._signature_port.verify(
            signature_header=command.signature,
            request_id=command.request_id,
            resource_id=resource_id,
            now=now,
        )

        notification = parse_webhook_notification(payload)
        if isinstance(notification, UnsupportedNotification):
            logger.info(
                "payment_webhook: ignored_notification type=%s resource_id=%s",
                notification.raw_type,
                resource_id,
            )
            return PaymentWebhookOutput(notification_type=notification.raw_type or "unknown", handled=False)

        resource = self._fetch_resource(notification)

        user_id = parse_user_reference(resource.external_reference)
        if self._accounts_port.get_account(user_id=user_id) is None:
            raise AccountNotFoundError("No account for external_reference.")

        transition = resolve_transition(resource, now=now)
        if transition is None:
            logger.info(
                "payment_webhook: status_without_transition kind=%s resource_id=%s status=%s user_id=%s",
                resource.kind,
                resource.resource_id,
                resource.status,
                user_id,
            )
            return PaymentWebhookOutput(notification_type=resource.kind, handled=False)

        applied = self._accounts_port.apply_subscription_transition(
            user_id=user_id,
            transition=transition,
            audit_entry=SubscriptionAuditEntry(
                user_id=user_id,
                event_type=transition.event_type,
                external_id=resource.resource_id,
                status=resource.status,
                raw_payload=resource.raw,
                source=WEBHOOK_SOURCE,
                created_at=now,
            ),
            now=now,
        )
        if applied:
            logger.info(
                "payment_webhook: transition_applied user_id=%s event=%s resource_id=%s",
                user_id,
                transition.event_type,
                resource.resource_id,
            )
        else:
            logger.info(
                "payment_webhook: duplicate_event user_id=%s event=%s resource_id=%s",
                user_id,
                transition.event_type,
                resource.resource_id,
            )
        return PaymentWebhookOutput(notification_type=resource.kind, handled=True, duplicate=not applied)

    def _fetch_resource(self, notification: WebhookNotification) -> ProviderResource:
        if isinstance(notification, PaymentNotification):
            return self._payment_provider_port.get_payment(payment_id=notification.resource_id)
        if isinstance(notification, PreapprovalNotification):
            return self._payment_provider_port.get_preapproval(preapproval_id=notification.resource_id)
        raise TypeError(f"Unhandled notification: {notification!r}")


def _decode_payload(raw: bytes) -> Any:
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, ValueError) as exc:
        raise WebhookPayloadError("Webhook body is not valid JSON.") from exc


def _is_test_notification(raw: bytes) -> bool:
    try:
        return extract_resource_id(_decode_payload(raw)) == TEST_NOTIFICATION_ID
    except WebhookPayloadError:
        return False
