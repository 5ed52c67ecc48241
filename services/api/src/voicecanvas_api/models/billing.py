"""Models for checkout, plan catalog and webhook responses."""

from pydantic import BaseModel, Field

from .base import CamelModel


class CheckoutSessionRequest(CamelModel):
    plan_type: str = Field(description="Plan key, e.g. 'yearly' or 'millionChars'")


class CheckoutSessionResponse(CamelModel):
    session_id: str = Field(description="Stripe checkout session ID")


class PlanFeatureResponse(CamelModel):
    key: str
    amount: int | None = None
    days: int | None = None


class PlanResponse(CamelModel):
    key: str
    kind: str
    price: str
    characters: int
    duration_days: int | None = None
    purchasable: bool
    features: list[PlanFeatureResponse]


class PlanListResponse(CamelModel):
    plans: list[PlanResponse]


class WebhookReceived(BaseModel):
    received: bool = True
