from __future__ import annotations

from datetime import datetime
from typing import Protocol

from app.application.dto.rate_limit import RateLimitDecision


class RateLimitPort(Protocol):
    def hit(
        self,
        *,
        user_id: str,
        endpoint: str,
        max_requests: int,
        window_seconds: int,
        now: datetime,
    ) -> RateLimitDecision:
        ...
