"""Stripe billing webhook."""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from voicecanvas_shared.config import get_settings
from voicecanvas_shared.db.connection import get_session
from voicecanvas_shared.logging import get_logger

from ..dependencies.services import get_plan_catalog, get_stripe_gateway
from ..errors import SignatureVerificationFailed, ValidationError, VoiceCanvasError
from ..services.billing_events import StripeEventResolver
from ..services.plan_catalog import PlanCatalog
from ..services.reconciliation_service import ReconciliationService
from ..services.stripe_gateway import StripeGateway, parse_event

logger = get_logger(__name__)
router = APIRouter(prefix="/api/webhook", tags=["Billing"])


@router.post(
    "/stripe",
    summary="Stripe webhook",
    description="Receive Stripe billing events and reconcile subscriptions and quotas",
)
async def stripe_webhook(
    request: Request,
    session: AsyncSession = Depends(get_session),
    gateway: StripeGateway = Depends(get_stripe_gateway),
    catalog: PlanCatalog = Depends(get_plan_catalog),
) -> JSONResponse:
    payload = await request.body()
    settings = get_settings()

    try:
        if settings.is_production:
            event = gateway.construct_event(payload, request.headers.get("Stripe-Signature"))
        else:
            event = parse_event(payload)
    except (SignatureVerificationFailed, ValidationError) as e:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": e.message})

    event_id = event.get("id")
    logger.info("Stripe webhook received", event_type=event.get("type"), event_id=event_id)

    try:
        billing_event = await StripeEventResolver(gateway).resolve(event)
        if billing_event is not None:
            await ReconciliationService(session, catalog).reconcile(billing_event)
    except Exception as e:
        # Stripe redelivers events answered with a 5xx
        logger.exception(
            "Webhook processing failed",
            event_type=event.get("type"),
            event_id=event_id,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Webhook processing failed",
                "details": _error_details(e, settings.is_production),
            },
        )

    return JSONResponse(content={"received": True})


def _error_details(error: Exception, production: bool) -> str:
    if isinstance(error, VoiceCanvasError):
        return error.message
    if production:
        return type(error).__name__
    return str(error) or type(error).__name__
