from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import (
    get_current_user,
    get_ensure_account_use_case,
    get_get_entitlement_status_use_case,
)
from app.api.schemas.me import EntitlementStatusResponse
from app.application.dto.entitlements import EntitlementStatusOutput
from app.application.use_cases.ensure_account import EnsureAccountUseCase
from app.application.use_cases.get_entitlement_status import GetEntitlementStatusUseCase
from app.domain.entities.user import User
from app.domain.exceptions import AccountNotFoundError


router = APIRouter()


@router.get("/v1/me/entitlement", response_model=EntitlementStatusResponse)
def get_entitlement(
    current_user: User = Depends(get_current_user),
    use_case: GetEntitlementStatusUseCase = Depends(get_get_entitlement_status_use_case),
):
    try:
        output = use_case.execute(user_id=current_user.id)
    except AccountNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return _to_response(output)


@router.post("/v1/me/account", response_model=EntitlementStatusResponse)
def ensure_account(
    current_user: User = Depends(get_current_user),
    use_case: EnsureAccountUseCase = Depends(get_ensure_account_use_case),
):
    return _to_response(use_case.execute(user_id=current_user.id))


def _to_response(output: EntitlementStatusOutput) -> EntitlementStatusResponse:
    return EntitlementStatusResponse(
        user_id=output.user_id,
        plan_type=output.plan_type,
        subscription_status=output.subscription_status,
        subscription_expires_at=output.subscription_expires_at,
        is_premium=output.is_premium,
        is_trial_active=output.is_trial_active,
        is_trial_expired=output.is_trial_expired,
        days_left_in_trial=output.days_left_in_trial,
    )
