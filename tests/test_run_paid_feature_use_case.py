from __future__ import annotations

from datetime import timedelta

import pytest

from app.application.dto.rate_limit import RateLimitDecision
from app.application.use_cases.run_paid_feature import RunPaidFeatureUseCase
from app.domain.exceptions import RateLimitExceededError

from conftest import NOW, USER_ID


class FakeRateLimitPort:
    def __init__(self, decision: RateLimitDecision):
        self.decision = decision
        self.calls = []

    def hit(self, *, user_id, endpoint, max_requests, window_seconds, now):
        self.calls.append((user_id, endpoint, max_requests, window_seconds, now))
        return self.decision


class FakeAiGateway:
    def __init__(self):
        self.calls = []

    def forward(self, *, feature, user_id, payload):
        self.calls.append((feature, user_id, payload))
        return {"reply": "ok"}


def _use_case(rate_limit_port, gateway) -> RunPaidFeatureUseCase:
    return RunPaidFeatureUseCase(
        ai_gateway_port=gateway,
        rate_limit_port=rate_limit_port,
        max_requests=5,
        window_seconds=60,
        clock=lambda: NOW,
    )


def test_forwards_when_under_limit():
    rate_limit = FakeRateLimitPort(RateLimitDecision(allowed=True, remaining=4, reset_at=NOW + timedelta(seconds=60)))
    gateway = FakeAiGateway()

    result = _use_case(rate_limit, gateway).execute(user_id=USER_ID, feature="agent-chat", payload={"message": "oi"})

    assert result == {"reply": "ok"}
    assert gateway.calls == [("agent-chat", USER_ID, {"message": "oi"})]
    assert rate_limit.calls == [(USER_ID, "agent-chat", 5, 60, NOW)]


def test_rate_limited_request_is_not_forwarded():
    reset_at = NOW + timedelta(seconds=42)
    gateway = FakeAiGateway()

    with pytest.raises(RateLimitExceededError) as exc_info:
        _use_case(FakeRateLimitPort(RateLimitDecision(allowed=False, remaining=0, reset_at=reset_at)), gateway).execute(
            user_id=USER_ID,
            feature="analyze-stock",
            payload={},
        )

    assert exc_info.value.reset_at == reset_at
    assert gateway.calls == []
