from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from app.api.deps import get_run_paid_feature_use_case, require_entitlement
from app.api.schemas.ai import PaidFeatureResponse
from app.application.use_cases.run_paid_feature import RunPaidFeatureUseCase
from app.domain.entities.user import User
from app.domain.exceptions import AiGatewayError, RateLimitExceededError


router = APIRouter()


@router.post("/v1/ai/agent-chat", response_model=PaidFeatureResponse)
def agent_chat(
    payload: dict[str, Any] = Body(...),
    current_user: User = Depends(require_entitlement("premium")),
    use_case: RunPaidFeatureUseCase = Depends(get_run_paid_feature_use_case),
):
    return _run(use_case, feature="agent-chat", user=current_user, payload=payload)


@router.post("/v1/ai/analyze-stock", response_model=PaidFeatureResponse)
def analyze_stock(
    payload: dict[str, Any] = Body(...),
    current_user: User = Depends(require_entitlement("any")),
    use_case: RunPaidFeatureUseCase = Depends(get_run_paid_feature_use_case),
):
    return _run(use_case, feature="analyze-stock", user=current_user, payload=payload)


@router.post("/v1/ai/analyze-investment", response_model=PaidFeatureResponse)
def analyze_investment(
    payload: dict[str, Any] = Body(...),
    current_user: User = Depends(require_entitlement("any")),
    use_case: RunPaidFeatureUseCase = Depends(get_run_paid_feature_use_case),
):
    return _run(use_case, feature="analyze-investment", user=current_user, payload=payload)


def _run(
    use_case: RunPaidFeatureUseCase,
    *,
    feature: str,
    user: User,
    payload: dict[str, Any],
) -> PaidFeatureResponse:
    try:
        result = use_case.execute(user_id=user.id, feature=feature, payload=payload)
    except RateLimitExceededError as exc:
        reset_at = exc.reset_at.isoformat()
        raise HTTPException(
            status_code=429,
            detail={
                "error": str(exc),
                "rate_limit": {"remaining": 0, "reset_at": reset_at},
            },
            headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": reset_at},
        ) from exc
    except AiGatewayError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return PaidFeatureResponse(feature=feature, result=result)
