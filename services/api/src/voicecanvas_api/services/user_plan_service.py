"""Current plan lookup with lazy trial provisioning."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voicecanvas_shared.db.models import (
    PLAN_TRIAL,
    SUBSCRIPTION_ACTIVE,
    CharacterQuota,
    Subscription,
    User,
    utcnow,
)
from voicecanvas_shared.logging import get_logger

from ..errors import UserNotFound
from .plan_catalog import TRIAL_CHARACTERS, TRIAL_DAYS

logger = get_logger(__name__)


@dataclass
class UserPlan:
    subscription: Subscription
    character_quota: CharacterQuota
    now: datetime

    @property
    def remaining_characters(self) -> int:
        return self.character_quota.remaining_characters(self.now)


class UserPlanService:
    """Service for reading a user's subscription and character quota."""

    def __init__(self, session: AsyncSession, clock: Callable[[], datetime] = utcnow):
        self.session = session
        self.clock = clock

    async def get_plan(self, email: str) -> UserPlan:
        """Return the user's plan, creating the trial rows if they are missing.

        Raises:
            UserNotFound: No account has ``email``.
        """
        result = await self.session.execute(
            select(User).where(User.email == email).with_for_update()
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFound()

        now = self.clock()
        trial_end = now + timedelta(days=TRIAL_DAYS)

        subscription = await self.session.scalar(
            select(Subscription).where(Subscription.user_id == user.user_id)
        )
        quota = await self.session.scalar(
            select(CharacterQuota).where(CharacterQuota.user_id == user.user_id)
        )

        created = False
        if quota is None:
            quota = CharacterQuota(
                user_id=user.user_id,
                permanent_quota=0,
                temporary_quota=TRIAL_CHARACTERS,
                used_characters=0,
                quota_expiry=trial_end,
                last_updated=now,
            )
            self.session.add(quota)
            created = True
        if subscription is None:
            subscription = Subscription(
                user_id=user.user_id,
                plan_type=PLAN_TRIAL,
                start_date=now,
                end_date=trial_end,
                status=SUBSCRIPTION_ACTIVE,
            )
            self.session.add(subscription)
            created = True

        if created:
            await self.session.commit()
            logger.info("Trial plan provisioned", user_id=str(user.user_id))

        return UserPlan(subscription=subscription, character_quota=quota, now=now)
