"""Subscription SQLAlchemy model."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, generate_uuid

if TYPE_CHECKING:
    from .user import User

PLAN_TRIAL = "trial"
PLAN_MONTHLY = "monthly"
PLAN_YEARLY = "yearly"

SUBSCRIPTION_ACTIVE = "active"
SUBSCRIPTION_CANCELED = "canceled"
SUBSCRIPTION_PAYMENT_FAILED = "payment_failed"


class Subscription(Base):
    """Time-bounded plan membership. At most one row per user."""

    __tablename__ = "Subscriptions"

    subscription_id: Mapped[UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("Users.user_id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    plan_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="'trial', 'monthly' or 'yearly'",
    )
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    status: Mapped[str] = mapped_column(
        String(50),
        default=SUBSCRIPTION_ACTIVE,
        nullable=False,
        comment="'active', 'canceled', 'payment_failed' or a vendor status",
    )

    user: Mapped["User"] = relationship(back_populates="subscription", lazy="raise")

    def is_active_at(self, now: datetime) -> bool:
        """True when the subscription is active and has not yet ended."""
        return self.status == SUBSCRIPTION_ACTIVE and self.end_date > now
