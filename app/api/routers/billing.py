from __future__ import annotations

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from app.api.deps import (
    get_create_subscription_use_case,
    get_current_user,
    get_process_payment_webhook_use_case,
    get_sweep_expired_subscriptions_use_case,
)
from app.api.schemas.billing import (
    CreateSubscriptionRequest,
    CreateSubscriptionResponse,
    ExpireSubscriptionsResponse,
    PaymentWebhookResponse,
)
from app.application.dto.billing import (
    CreateSubscriptionInput,
    PaymentWebhookInput,
    SweepExpiredSubscriptionsInput,
)
from app.application.use_cases.create_subscription import CreateSubscriptionUseCase
from app.application.use_cases.process_payment_webhook import ProcessPaymentWebhookUseCase
from app.application.use_cases.sweep_expired_subscriptions import SweepExpiredSubscriptionsUseCase
from app.domain.entities.user import User
from app.domain.exceptions import (
    AccountNotFoundError,
    CronAuthenticationError,
    CronConfigurationError,
    InvalidAccountReferenceError,
    InvalidPromoCodeError,
    PaymentProviderError,
    SubscriptionRequestError,
    WebhookAuthenticationError,
    WebhookConfigurationError,
    WebhookPayloadError,
)


router = APIRouter()


@router.post("/v1/billing/subscriptions", response_model=CreateSubscriptionResponse)
def create_subscription(
    req: CreateSubscriptionRequest,
    current_user: User = Depends(get_current_user),
    use_case: CreateSubscriptionUseCase = Depends(get_create_subscription_use_case),
):
    if req.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="userId does not match the authenticated user.")
    try:
        output = use_case.execute(
            CreateSubscriptionInput(
                user_id=current_user.id,
                email=req.email,
                promo_code=req.promo_code,
            )
        )
    except (InvalidPromoCodeError, SubscriptionRequestError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except AccountNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except PaymentProviderError as exc:
        raise HTTPException(status_code=503, detail="Payment provider unavailable.") from exc

    return CreateSubscriptionResponse(
        init_point=output.init_point,
        preference_id=output.preference_id,
    )


@router.post("/v1/billing/webhook", response_model=PaymentWebhookResponse)
async def payment_webhook(
    request: Request,
    x_signature: str | None = Header(None, alias="x-signature"),
    x_request_id: str | None = Header(None, alias="x-request-id"),
    use_case: ProcessPaymentWebhookUseCase = Depends(get_process_payment_webhook_use_case),
):
    payload = await request.body()
    try:
        output = use_case.execute(
            PaymentWebhookInput(
                payload=payload,
                signature=x_signature,
                request_id=x_request_id,
            )
        )
    except WebhookConfigurationError as exc:
        raise HTTPException(status_code=500, detail="Server configuration error.") from exc
    except WebhookAuthenticationError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except (WebhookPayloadError, InvalidAccountReferenceError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except AccountNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except PaymentProviderError as exc:
        raise HTTPException(status_code=502, detail="Payment provider unavailable.") from exc

    return PaymentWebhookResponse(success=True, handled=output.handled, duplicate=output.duplicate)


@router.post("/v1/billing/expire-subscriptions", response_model=ExpireSubscriptionsResponse)
def expire_subscriptions(
    x_cron_secret: str | None = Header(None, alias="x-cron-secret"),
    use_case: SweepExpiredSubscriptionsUseCase = Depends(get_sweep_expired_subscriptions_use_case),
):
    try:
        output = use_case.execute(SweepExpiredSubscriptionsInput(cron_secret=x_cron_secret))
    except CronConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except CronAuthenticationError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    return ExpireSubscriptionsResponse(
        success=True,
        expired_count=output.expired_count,
        trial_ending_soon_count=output.trial_ending_soon_count,
    )
