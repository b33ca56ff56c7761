from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import Any

import httpx

from app.application.ports.ai_gateway_port import AiGatewayPort
from app.domain.exceptions import AiGatewayError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AiGatewayClientSettings:
    base_url: str
    api_key: str
    timeout_seconds: float
    max_retries: int


class AiGatewayClient(AiGatewayPort):
    """Proxy fino para os handlers de IA (chat, analise de acoes e investimentos)."""

    def __init__(self, settings: AiGatewayClientSettings, *, transport: httpx.BaseTransport | None = None):
        self._settings = settings
        self._transport = transport

    def forward(self, *, feature: str, user_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._settings.base_url.rstrip('/')}/{feature}"
        headers = {
            "Authorization": f"Bearer {self._settings.api_key}",
            "X-Growing-User-Id": user_id,
        }
        attempts = max(1, self._settings.max_retries)
        delay = 0.5
        last_exc: Exception | None = None

        for attempt in range(1, attempts + 1):
            started = time.perf_counter()
            try:
                with httpx.Client(timeout=self._settings.timeout_seconds, transport=self._transport) as client:
                    response = client.post(url, json=payload, headers=headers)
                    response.raise_for_status()
                    body = response.json()
                logger.info(
                    "ai_gateway_client: forwarded feature=%s user_id=%s elapsed_ms=%.0f",
                    feature,
                    user_id,
                    (time.perf_counter() - started) * 1000,
                )
                if not isinstance(body, dict):
                    return {"result": body}
                return body
            except httpx.HTTPStatusError as exc:
                last_exc = exc
                if exc.response.status_code < 500 and exc.response.status_code != 429:
                    break
            except (httpx.HTTPError, ValueError) as exc:
                last_exc = exc

            if attempt == attempts:
                break
            logger.warning(
                "ai_gateway_client: retry attempt=%s/%s feature=%s error=%s",
                attempt,
                attempts,
                feature,
                last_exc,
            )
            time.sleep(delay)
            delay *= 2

        logger.error("ai_gateway_client: request_failed feature=%s error=%s", feature, last_exc)
        raise AiGatewayError("AI service is temporarily unavailable.") from last_exc
