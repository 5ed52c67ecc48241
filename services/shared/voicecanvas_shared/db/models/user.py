"""User SQLAlchemy model for accounts and verification state."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, generate_uuid

if TYPE_CHECKING:
    from .character_quota import CharacterQuota
    from .subscription import Subscription

USER_STATUS_PENDING = "pending"
USER_STATUS_ACTIVE = "active"


class User(Base, TimestampMixin):
    """Registered account, keyed by email."""

    __tablename__ = "Users"

    user_id: Mapped[UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email_verified_at: Mapped[datetime | None] = mapped_column(
        DateTime,
        nullable=True,
        comment="Null while the address is unverified",
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=USER_STATUS_PENDING,
        nullable=False,
        comment="Account status: 'pending' or 'active'",
    )

    subscription: Mapped["Subscription | None"] = relationship(
        back_populates="user",
        uselist=False,
        lazy="raise",
    )
    character_quota: Mapped["CharacterQuota | None"] = relationship(
        back_populates="user",
        uselist=False,
        lazy="raise",
    )

    __table_args__ = (Index("ix_users_email", "email", unique=True),)
