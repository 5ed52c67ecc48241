"""Character quota SQLAlchemy model."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, generate_uuid, utcnow

if TYPE_CHECKING:
    from .user import User


class CharacterQuota(Base):
    """Character allowance of a user.

    ``permanent_quota`` never expires. ``temporary_quota`` counts only while
    ``quota_expiry`` is unset or in the future. The remaining balance is derived
    on read and is never stored.
    """

    __tablename__ = "CharacterQuotas"

    quota_id: Mapped[UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("Users.user_id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    permanent_quota: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    temporary_quota: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    used_characters: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    quota_expiry: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    user: Mapped["User"] = relationship(back_populates="character_quota", lazy="raise")

    __table_args__ = (
        CheckConstraint("permanent_quota >= 0", name="ck_quota_permanent_nonneg"),
        CheckConstraint("temporary_quota >= 0", name="ck_quota_temporary_nonneg"),
        CheckConstraint("used_characters >= 0", name="ck_quota_used_nonneg"),
    )

    def temporary_active(self, now: datetime) -> bool:
        return self.quota_expiry is None or self.quota_expiry > now

    def remaining_characters(self, now: datetime | None = None) -> int:
        """Characters still available at ``now``. Negative once exhausted."""
        now = now or utcnow()
        temporary = self.temporary_quota if self.temporary_active(now) else 0
        return self.permanent_quota + temporary - self.used_characters
