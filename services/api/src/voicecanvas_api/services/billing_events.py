"""Typed billing events and their construction from raw Stripe webhooks."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from voicecanvas_shared.logging import get_logger

from ..errors import InvalidPriceIdentifier, UserNotFound, ValidationError
from .stripe_gateway import StripeGateway, stripe_field

logger = get_logger(__name__)


class BillingEventKind(str, Enum):
    CHECKOUT_COMPLETED = "checkout_completed"
    SUBSCRIPTION_UPDATED = "subscription_updated"
    SUBSCRIPTION_DELETED = "subscription_deleted"
    INVOICE_PAYMENT_SUCCEEDED = "invoice_payment_succeeded"
    INVOICE_PAYMENT_FAILED = "invoice_payment_failed"

    @property
    def grants_plan(self) -> bool:
        return self in (
            BillingEventKind.CHECKOUT_COMPLETED,
            BillingEventKind.INVOICE_PAYMENT_SUCCEEDED,
        )


STRIPE_EVENT_KINDS: dict[str, BillingEventKind] = {
    "checkout.session.completed": BillingEventKind.CHECKOUT_COMPLETED,
    "customer.subscription.updated": BillingEventKind.SUBSCRIPTION_UPDATED,
    "customer.subscription.deleted": BillingEventKind.SUBSCRIPTION_DELETED,
    "invoice.payment_succeeded": BillingEventKind.INVOICE_PAYMENT_SUCCEEDED,
    "invoice.payment_failed": BillingEventKind.INVOICE_PAYMENT_FAILED,
}


@dataclass(frozen=True)
class BillingEvent:
    """A billing notification reduced to what reconciliation needs.

    ``price_id`` is set for plan-granting kinds. ``status`` and ``period_end``
    carry the vendor's view for ``subscription_updated``.
    """

    event_id: str
    kind: BillingEventKind
    email: str
    price_id: str | None = None
    status: str | None = None
    period_end: datetime | None = None


def _from_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, (int, float)):
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)


def _invoice_subscription_id(invoice: dict[str, Any]) -> str | None:
    # Newer API versions moved the subscription under parent.subscription_details
    return stripe_field(invoice, "subscription") or stripe_field(
        invoice, "parent", "subscription_details", "subscription"
    )


class StripeEventResolver:
    """Turns raw Stripe events into ``BillingEvent``s, fetching what the payload lacks."""

    def __init__(self, gateway: StripeGateway):
        self._gateway = gateway

    async def resolve(self, event: dict[str, Any]) -> BillingEvent | None:
        """Resolve a raw event.

        Returns:
            The billing event, or None when the event needs no reconciliation.

        Raises:
            UserNotFound: If no customer email can be determined.
            InvalidPriceIdentifier: If a plan-granting event has no price.
            ValidationError: If the event carries no id.
        """
        event_type = event.get("type", "")
        kind = STRIPE_EVENT_KINDS.get(event_type)
        if kind is None:
            logger.info("Ignoring Stripe event", event_type=event_type, event_id=event.get("id"))
            return None

        event_id = event.get("id")
        if not event_id:
            raise ValidationError("Billing event has no id")
        obj = stripe_field(event, "data", "object") or {}

        if kind is BillingEventKind.CHECKOUT_COMPLETED:
            return await self._checkout_completed(event_id, obj)
        if kind is BillingEventKind.INVOICE_PAYMENT_SUCCEEDED:
            return await self._invoice_paid(event_id, obj)

        email = await self._customer_email(obj)
        if kind is BillingEventKind.SUBSCRIPTION_UPDATED:
            period_end = stripe_field(obj, "current_period_end")
            if period_end is None:
                period_end = stripe_field(obj, "items", "data", 0, "current_period_end")
            return BillingEvent(
                event_id=event_id,
                kind=kind,
                email=email,
                status=obj.get("status"),
                period_end=_from_timestamp(period_end),
            )
        return BillingEvent(event_id=event_id, kind=kind, email=email)

    async def _customer_email(self, obj: dict[str, Any]) -> str:
        customer = obj.get("customer")
        if isinstance(customer, dict):
            customer = customer.get("id")
        email = obj.get("customer_email")
        if not email and customer:
            email = await self._gateway.customer_email(customer)
        if not email:
            raise UserNotFound("Customer email not found")
        return email

    async def _checkout_completed(self, event_id: str, session: dict[str, Any]) -> BillingEvent:
        email = stripe_field(session, "customer_details", "email") or session.get("customer_email")
        if not email:
            raise UserNotFound("Customer email not found")

        price_id = stripe_field(session, "line_items", "data", 0, "price", "id")
        if not price_id:
            price_id = await self._gateway.first_line_item_price(session["id"])
        if not price_id:
            raise InvalidPriceIdentifier("Price ID not found")

        return BillingEvent(
            event_id=event_id,
            kind=BillingEventKind.CHECKOUT_COMPLETED,
            email=email,
            price_id=price_id,
        )

    async def _invoice_paid(self, event_id: str, invoice: dict[str, Any]) -> BillingEvent | None:
        subscription_id = _invoice_subscription_id(invoice)
        if not subscription_id:
            logger.info("Ignoring invoice without subscription", event_id=event_id)
            return None
        # The checkout event already granted the first period
        if invoice.get("billing_reason") == "subscription_create":
            logger.info("Ignoring first invoice of new subscription", event_id=event_id)
            return None

        email = await self._customer_email(invoice)
        price_id = await self._gateway.subscription_price(subscription_id)
        if not price_id:
            raise InvalidPriceIdentifier("Price ID not found")

        return BillingEvent(
            event_id=event_id,
            kind=BillingEventKind.INVOICE_PAYMENT_SUCCEEDED,
            email=email,
            price_id=price_id,
        )
