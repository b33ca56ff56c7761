from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CreateSubscriptionRequest(BaseModel):
    # Price fields sent by the client are ignored; the amount is computed server-side.
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str = Field(..., min_length=1, alias="userId", description="Id do usuario (sub do token).")
    email: str = Field(..., min_length=3, description="Email do pagador.")
    promo_code: str | None = Field(None, alias="promoCode", description="Cupom de desconto opcional.")


class CreateSubscriptionResponse(BaseModel):
    init_point: str
    preference_id: str


class PaymentWebhookResponse(BaseModel):
    success: bool
    handled: bool
    duplicate: bool


class ExpireSubscriptionsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    expired_count: int = Field(..., alias="expiredCount")
    trial_ending_soon_count: int = Field(..., alias="trialEndingSoonCount")
