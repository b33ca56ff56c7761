from __future__ import annotations

from typing import Any
from uuid import UUID

from app.domain.entities.payment_event import (
    PaymentNotification,
    PreapprovalNotification,
    UnsupportedNotification,
    WebhookNotification,
)
from app.domain.exceptions import InvalidAccountReferenceError, WebhookPayloadError


_PREAPPROVAL_TAGS = {"subscription_preapproval", "preapproval"}


def extract_resource_id(payload: Any) -> str:
    if not isinstance(payload, dict):
        raise WebhookPayloadError("Webhook body must be a JSON object.")
    data = payload.get("data")
    if not isinstance(data, dict):
        raise WebhookPayloadError("Webhook body is missing data.id.")
    resource_id = data.get("id")
    if resource_id is None or isinstance(resource_id, bool) or str(resource_id).strip() == "":
        raise WebhookPayloadError("Webhook body is missing data.id.")
    return str(resource_id).strip()


def parse_webhook_notification(payload: Any) -> WebhookNotification:
    resource_id = extract_resource_id(payload)
    raw_type = str(payload.get("type") or "").strip().lower()
    entity = str(payload.get("entity") or "").strip().lower()

    if raw_type == "payment":
        return PaymentNotification(resource_id=resource_id)
    if raw_type in _PREAPPROVAL_TAGS or entity in _PREAPPROVAL_TAGS:
        return PreapprovalNotification(resource_id=resource_id)
    return UnsupportedNotification(resource_id=resource_id, raw_type=raw_type or entity)


def parse_user_reference(value: str | None) -> str:
    if not value:
        raise InvalidAccountReferenceError("Missing external_reference.")
    try:
        return str(UUID(str(value).strip()))
    except ValueError as exc:
        raise InvalidAccountReferenceError("external_reference is not a valid user id.") from exc
