"""Thin async wrapper over the synchronous Stripe SDK."""

import asyncio
import json
from collections.abc import Callable
from typing import Any, TypeVar

import stripe

from voicecanvas_shared.logging import get_logger

from ..errors import BillingProviderError, SignatureVerificationFailed, ValidationError

logger = get_logger(__name__)

T = TypeVar("T")


def stripe_field(obj: Any, *path: str) -> Any:
    """Walk a Stripe object or plain dict, returning None when a key is missing."""
    current = obj
    for key in path:
        if current is None:
            return None
        try:
            current = current[key]
        except (KeyError, IndexError, TypeError):
            return None
    return current


class StripeGateway:
    """Stripe calls used by billing, each run off the event loop."""

    def __init__(self, secret_key: str, webhook_secret: str = ""):
        self._webhook_secret = webhook_secret
        self._client = stripe.StripeClient(secret_key) if secret_key else None

    @property
    def configured(self) -> bool:
        return self._client is not None

    def construct_event(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        """Verify the ``Stripe-Signature`` header and parse the event.

        Raises:
            SignatureVerificationFailed: If the header or secret is missing, or
                the signature does not match.
        """
        if not signature or not self._webhook_secret:
            raise SignatureVerificationFailed("Missing signature or endpoint secret")
        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"), signature, self._webhook_secret
            )
        except (stripe.SignatureVerificationError, UnicodeDecodeError) as e:
            logger.warning("Webhook signature verification failed", error=str(e))
            raise SignatureVerificationFailed() from e
        return parse_event(payload)

    async def _call(self, operation: str, fn: Callable[[], T]) -> T:
        if self._client is None:
            raise BillingProviderError("Stripe is not configured")
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, fn)
        except stripe.StripeError as e:
            logger.error("Stripe call failed", operation=operation, error=str(e))
            raise BillingProviderError(f"Stripe {operation} failed: {e}") from e

    async def customer_email(self, customer_id: str) -> str | None:
        customer = await self._call(
            "customers.retrieve", lambda: self._client.customers.retrieve(customer_id)
        )
        return stripe_field(customer, "email")

    async def first_line_item_price(self, session_id: str) -> str | None:
        line_items = await self._call(
            "checkout.sessions.line_items.list",
            lambda: self._client.checkout.sessions.line_items.list(session_id),
        )
        return stripe_field(line_items, "data", 0, "price", "id")

    async def subscription_price(self, subscription_id: str) -> str | None:
        subscription = await self._call(
            "subscriptions.retrieve",
            lambda: self._client.subscriptions.retrieve(subscription_id),
        )
        return stripe_field(subscription, "items", "data", 0, "price", "id")

    async def create_checkout_session(
        self,
        price_id: str,
        mode: str,
        success_url: str,
        cancel_url: str,
        customer_email: str | None = None,
    ) -> str:
        """Create a hosted checkout session and return its ID."""
        params: dict[str, Any] = {
            "payment_method_types": ["card"],
            "line_items": [{"price": price_id, "quantity": 1}],
            "mode": mode,
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
        if customer_email:
            params["customer_email"] = customer_email
        session = await self._call(
            "checkout.sessions.create",
            lambda: self._client.checkout.sessions.create(params=params),
        )
        return session["id"]


def parse_event(payload: bytes) -> dict[str, Any]:
    """Parse an unsigned webhook body.

    Raises:
        ValidationError: If the body is not a JSON event object.
    """
    try:
        event = json.loads(payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError("Malformed webhook payload") from e
    if not isinstance(event, dict) or not event.get("type") or not event.get("id"):
        raise ValidationError("Malformed webhook payload")
    return event
