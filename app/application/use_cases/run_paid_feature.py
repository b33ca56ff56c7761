from __future__ import annotations

import logging
from typing import Any

from app.application.ports.ai_gateway_port import AiGatewayPort
from app.application.ports.rate_limit_port import RateLimitPort
from app.domain.exceptions import RateLimitExceededError

from .common import Clock, utcnow


logger = logging.getLogger(__name__)


class RunPaidFeatureUseCase:
    """Encaminha uma requisicao ja autorizada pelo gate para o gateway de IA."""

    def __init__(
        self,
        *,
        ai_gateway_port: AiGatewayPort,
        rate_limit_port: RateLimitPort,
        max_requests: int,
        window_seconds: int,
        clock: Clock = utcnow,
    ):
        self._ai_gateway_port = ai_gateway_port
        self._rate_limit_port = rate_limit_port
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._clock = clock

    def execute(self, *, user_id: str, feature: str, payload: dict[str, Any]) -> dict[str, Any]:
        decision = self._rate_limit_port.hit(
            user_id=user_id,
            endpoint=feature,
            max_requests=self._max_requests,
            window_seconds=self._window_seconds,
            now=self._clock(),
        )
        if not decision.allowed:
            logger.info("paid_feature: rate_limited user_id=%s feature=%s", user_id, feature)
            raise RateLimitExceededError(
                "Rate limit exceeded. Try again shortly.",
                reset_at=decision.reset_at,
            )
        return self._ai_gateway_port.forward(feature=feature, user_id=user_id, payload=payload)
