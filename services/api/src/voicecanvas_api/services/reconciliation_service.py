"""Merge billing events into stored subscription and quota state.

Each event runs in its own transaction. The owning user row is locked first so
concurrent events for one user apply one after another, and the vendor event
id is recorded in the same transaction so a redelivered event accrues nothing.
"""

import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Literal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from voicecanvas_shared.db.models import (
    PLAN_MONTHLY,
    PLAN_YEARLY,
    SUBSCRIPTION_ACTIVE,
    SUBSCRIPTION_CANCELED,
    SUBSCRIPTION_PAYMENT_FAILED,
    CharacterQuota,
    ProcessedBillingEvent,
    Subscription,
    User,
    utcnow,
)
from voicecanvas_shared.logging import get_logger

from ..errors import InvalidPriceIdentifier, UserNotFound
from .billing_events import BillingEvent, BillingEventKind
from .plan_catalog import PlanCatalog, PlanDescriptor

logger = get_logger(__name__)

SECONDS_PER_DAY = 86400

Outcome = Literal["applied", "duplicate", "skipped"]


@dataclass(frozen=True)
class ReconcileResult:
    event_id: str
    outcome: Outcome
    user_id: UUID | None = None


class ReconciliationService:
    """Applies ``BillingEvent``s to Subscriptions and CharacterQuotas."""

    def __init__(
        self,
        session: AsyncSession,
        catalog: PlanCatalog,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize the reconciliation service.

        Args:
            session: Database session. The service commits or rolls back.
            catalog: Plan catalog used to resolve price identifiers.
            clock: Source of the current naive UTC time.
        """
        self.session = session
        self.catalog = catalog
        self.clock = clock

    async def reconcile(self, event: BillingEvent) -> ReconcileResult:
        """Apply one event atomically.

        Raises:
            UserNotFound: No user has the event's email.
            InvalidPriceIdentifier: The price is unknown or does not fit the event.
        """
        try:
            result = await self._apply(event)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Billing event reconciled",
            event_id=event.event_id,
            kind=event.kind.value,
            outcome=result.outcome,
            user_id=str(result.user_id) if result.user_id else None,
        )
        return result

    async def _apply(self, event: BillingEvent) -> ReconcileResult:
        user = await self._lock_user(event.email)

        if await self.session.get(ProcessedBillingEvent, event.event_id) is not None:
            return ReconcileResult(event.event_id, "duplicate", user.user_id)

        # Flushed before any write; only this insert maps to a duplicate
        self.session.add(
            ProcessedBillingEvent(event_id=event.event_id, event_type=event.kind.value)
        )
        try:
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            logger.info("Billing event already processed", event_id=event.event_id)
            return ReconcileResult(event.event_id, "duplicate")

        now = self.clock()
        if event.kind.grants_plan:
            plan = self.catalog.plan_for_price(event.price_id)
            if plan.is_subscription:
                await self._grant_subscription(user.user_id, plan, now)
            elif event.kind is BillingEventKind.CHECKOUT_COMPLETED:
                await self._grant_permanent(user.user_id, plan, now)
            else:
                raise InvalidPriceIdentifier(
                    f"Price {event.price_id} is not a subscription plan"
                )
            outcome: Outcome = "applied"
        else:
            outcome = await self._apply_status(user.user_id, event, now)

        await self.session.flush()
        return ReconcileResult(event.event_id, outcome, user.user_id)

    async def _lock_user(self, email: str) -> User:
        result = await self.session.execute(
            select(User).where(User.email == email).with_for_update()
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFound(f"No user with email {email}")
        return user

    async def _subscription(self, user_id: UUID) -> Subscription | None:
        result = await self.session.execute(
            select(Subscription).where(Subscription.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def _quota(self, user_id: UUID) -> CharacterQuota | None:
        result = await self.session.execute(
            select(CharacterQuota).where(CharacterQuota.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def _grant_subscription(
        self, user_id: UUID, plan: PlanDescriptor, now: datetime
    ) -> None:
        existing = await self._subscription(user_id)
        active = existing is not None and existing.status == SUBSCRIPTION_ACTIVE

        plan_type = plan.plan_type
        if active and existing.plan_type == PLAN_YEARLY and plan.plan_type == PLAN_MONTHLY:
            plan_type = PLAN_YEARLY

        days = plan.duration_days
        if active and existing.end_date > now:
            remaining = (existing.end_date - now).total_seconds() / SECONDS_PER_DAY
            days += math.ceil(remaining)
        end_date = now + timedelta(days=days)

        if existing is None:
            self.session.add(
                Subscription(
                    user_id=user_id,
                    plan_type=plan_type,
                    start_date=now,
                    end_date=end_date,
                    status=SUBSCRIPTION_ACTIVE,
                )
            )
        else:
            existing.plan_type = plan_type
            existing.end_date = end_date
            existing.status = SUBSCRIPTION_ACTIVE

        quota = await self._quota(user_id)
        if quota is None:
            self.session.add(
                CharacterQuota(
                    user_id=user_id,
                    permanent_quota=0,
                    temporary_quota=plan.characters,
                    used_characters=0,
                    quota_expiry=end_date,
                    last_updated=now,
                )
            )
        elif quota.quota_expiry is not None and quota.quota_expiry > now:
            quota.temporary_quota += plan.characters
            quota.quota_expiry = end_date
            quota.last_updated = now
        else:
            quota.temporary_quota = plan.characters
            quota.quota_expiry = end_date
            quota.last_updated = now

        logger.debug(
            "Subscription granted",
            user_id=str(user_id),
            plan_type=plan_type,
            end_date=end_date.isoformat(),
        )

    async def _grant_permanent(self, user_id: UUID, plan: PlanDescriptor, now: datetime) -> None:
        quota = await self._quota(user_id)
        if quota is None:
            self.session.add(
                CharacterQuota(
                    user_id=user_id,
                    permanent_quota=plan.characters,
                    temporary_quota=0,
                    used_characters=0,
                    last_updated=now,
                )
            )
        else:
            quota.permanent_quota += plan.characters
            quota.last_updated = now

    async def _apply_status(self, user_id: UUID, event: BillingEvent, now: datetime) -> Outcome:
        subscription = await self._subscription(user_id)
        if subscription is None:
            logger.warning(
                "No subscription to update, skipping event",
                event_id=event.event_id,
                kind=event.kind.value,
                user_id=str(user_id),
            )
            return "skipped"

        if event.kind is BillingEventKind.SUBSCRIPTION_UPDATED:
            subscription.status = event.status or SUBSCRIPTION_ACTIVE
            subscription.end_date = event.period_end or now
        elif event.kind is BillingEventKind.SUBSCRIPTION_DELETED:
            subscription.status = SUBSCRIPTION_CANCELED
        elif event.kind is BillingEventKind.INVOICE_PAYMENT_FAILED:
            subscription.status = SUBSCRIPTION_PAYMENT_FAILED
        return "applied"
