"""SQLAlchemy database models for VoiceCanvas."""

from .base import Base, TimestampMixin, generate_uuid, utcnow
from .billing_event import ProcessedBillingEvent
from .character_quota import CharacterQuota
from .subscription import (
    PLAN_MONTHLY,
    PLAN_TRIAL,
    PLAN_YEARLY,
    SUBSCRIPTION_ACTIVE,
    SUBSCRIPTION_CANCELED,
    SUBSCRIPTION_PAYMENT_FAILED,
    Subscription,
)
from .tokens import ResetToken, VerificationToken
from .user import USER_STATUS_ACTIVE, USER_STATUS_PENDING, User

__all__ = [
    "PLAN_MONTHLY",
    "PLAN_TRIAL",
    "PLAN_YEARLY",
    "SUBSCRIPTION_ACTIVE",
    "SUBSCRIPTION_CANCELED",
    "SUBSCRIPTION_PAYMENT_FAILED",
    "USER_STATUS_ACTIVE",
    "USER_STATUS_PENDING",
    "Base",
    "CharacterQuota",
    "ProcessedBillingEvent",
    "ResetToken",
    "Subscription",
    "TimestampMixin",
    "User",
    "VerificationToken",
    "generate_uuid",
    "utcnow",
]
