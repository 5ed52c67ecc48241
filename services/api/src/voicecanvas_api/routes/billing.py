"""Checkout session creation and the plan catalog."""

from fastapi import APIRouter, Depends

from voicecanvas_shared.config import get_settings
from voicecanvas_shared.logging import get_logger

from ..dependencies.auth import SessionUser, optional_auth
from ..dependencies.services import get_plan_catalog, get_stripe_gateway
from ..models.billing import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    PlanFeatureResponse,
    PlanListResponse,
    PlanResponse,
)
from ..services.plan_catalog import PlanCatalog
from ..services.stripe_gateway import StripeGateway

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["Billing"])


@router.post(
    "/create-checkout-session",
    response_model=CheckoutSessionResponse,
    summary="Create checkout session",
    description="Start a Stripe checkout for a subscription or character pack",
)
async def create_checkout_session(
    body: CheckoutSessionRequest,
    user: SessionUser | None = Depends(optional_auth),
    catalog: PlanCatalog = Depends(get_plan_catalog),
    gateway: StripeGateway = Depends(get_stripe_gateway),
) -> CheckoutSessionResponse:
    price_id = catalog.price_for_plan(body.plan_type)
    plan = catalog.get(body.plan_type)
    is_subscription = plan is not None and plan.is_subscription

    app_url = get_settings().app_url.rstrip("/")
    purchase_type = "subscription" if is_subscription else "quota"
    session_id = await gateway.create_checkout_session(
        price_id=price_id,
        mode="subscription" if is_subscription else "payment",
        success_url=f"{app_url}/profile?success=true&type={purchase_type}",
        cancel_url=f"{app_url}/pricing?canceled=true",
        customer_email=user.email if user else None,
    )
    logger.info("Checkout session created", plan=body.plan_type, session_id=session_id)
    return CheckoutSessionResponse(session_id=session_id)


@router.get(
    "/plans",
    response_model=PlanListResponse,
    summary="List plans",
    description="Plans shown on the pricing page",
)
async def list_plans(catalog: PlanCatalog = Depends(get_plan_catalog)) -> PlanListResponse:
    return PlanListResponse(
        plans=[
            PlanResponse(
                key=plan.key,
                kind=plan.kind,
                price=plan.display_price,
                characters=plan.characters,
                duration_days=plan.duration_days,
                purchasable=plan.purchasable,
                features=[
                    PlanFeatureResponse(key=f.key, amount=f.amount, days=f.days)
                    for f in plan.features
                ],
            )
            for plan in catalog.plans()
        ]
    )
