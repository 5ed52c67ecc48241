"""Single-use token models for password reset and email verification.

Only the SHA-256 digest of each token is persisted.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, generate_uuid, utcnow


class ResetToken(Base):
    """Password reset token owned by a user."""

    __tablename__ = "ResetTokens"

    token_id: Mapped[UUID] = mapped_column(primary_key=True, default=generate_uuid)
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("Users.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    expires: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (Index("ix_reset_tokens_user", "user_id"),)


class VerificationToken(Base):
    """Email verification token, owned by an email address."""

    __tablename__ = "VerificationTokens"

    token_id: Mapped[UUID] = mapped_column(primary_key=True, default=generate_uuid)
    identifier: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Email address the token verifies",
    )
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    expires: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (Index("ix_verification_tokens_identifier", "identifier"),)
