"""Single-use tokens for password reset and email verification.

Raw tokens only ever travel in the emailed link; the database keeps their
SHA-256 digest. A token that is unknown and one that was already used look the
same to the caller.
"""

import hashlib
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any
from urllib.parse import quote

from passlib.hash import bcrypt
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from voicecanvas_shared.db.models import (
    USER_STATUS_ACTIVE,
    USER_STATUS_PENDING,
    ResetToken,
    User,
    VerificationToken,
    utcnow,
)
from voicecanvas_shared.email import DeliveryResult, Mailer
from voicecanvas_shared.logging import get_logger

from ..errors import TokenExpired, TokenNotFound, ValidationError

logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 6
# bcrypt only looks at the first 72 bytes
BCRYPT_MAX_PASSWORD_LENGTH = 72


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def hash_password(password: str) -> str:
    return bcrypt.hash(password[:BCRYPT_MAX_PASSWORD_LENGTH])


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.verify(password[:BCRYPT_MAX_PASSWORD_LENGTH], password_hash)


@dataclass(frozen=True)
class TokenPolicy:
    name: str
    ttl: timedelta
    path: str


PASSWORD_RESET_POLICY = TokenPolicy("password_reset", timedelta(hours=1), "/reset-password")
EMAIL_VERIFICATION_POLICY = TokenPolicy(
    "email_verification", timedelta(hours=24), "/verify-email"
)


@dataclass(frozen=True)
class IssuedToken:
    token: str
    url: str
    expires: datetime
    delivery: DeliveryResult


class SingleUseTokenService:
    """Issue, store, and consume single-use tokens for one policy.

    Subclasses choose the token table and how a token relates to its owner.
    """

    policy: TokenPolicy
    model: Any

    def __init__(
        self,
        session: AsyncSession,
        mailer: Mailer,
        app_url: str,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session = session
        self.mailer = mailer
        self.app_url = app_url.rstrip("/")
        self.clock = clock

    def build_url(self, token: str) -> str:
        return f"{self.app_url}{self.policy.path}?token={quote(token, safe='')}"

    @staticmethod
    def generate_token() -> str:
        return secrets.token_urlsafe(32)

    def _owner_clause(self, owner: Any) -> Any:
        raise NotImplementedError

    def _new_row(self, owner: Any, token_hash: str, expires: datetime) -> Any:
        raise NotImplementedError

    async def _store_new_token(self, owner: Any) -> tuple[str, datetime]:
        """Replace any live tokens of ``owner`` with a fresh one. Does not commit."""
        await self.session.execute(delete(self.model).where(self._owner_clause(owner)))
        token = self.generate_token()
        expires = self.clock() + self.policy.ttl
        self.session.add(self._new_row(owner, hash_token(token), expires))
        await self.session.flush()
        return token, expires

    async def _consume(self, token: str) -> Any:
        """Claim a live token.

        The row is deleted with a checked DELETE before it is returned, so of
        two concurrent redemptions only one gets the row. The deletion is
        committed together with the caller's changes. An expired token is
        deleted and the deletion committed.

        Raises:
            TokenNotFound: Token absent or already used.
            TokenExpired: Token found but past its expiry.
        """
        if not token:
            raise TokenNotFound()
        result = await self.session.execute(
            select(self.model).where(self.model.token_hash == hash_token(token))
        )
        row = result.scalar_one_or_none()
        if row is None:
            logger.info("Token not found", policy=self.policy.name)
            raise TokenNotFound()

        claimed = await self._delete_row(row)
        self.session.expunge(row)
        if row.expires < self.clock():
            await self.session.commit()
            logger.info("Token expired", policy=self.policy.name)
            raise TokenExpired()
        if not claimed:
            await self.session.rollback()
            logger.info("Token already used", policy=self.policy.name)
            raise TokenNotFound()
        return row

    async def _delete_row(self, row: Any) -> bool:
        result = await self.session.execute(
            delete(self.model)
            .where(self.model.token_id == row.token_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class PasswordResetService(SingleUseTokenService):
    policy = PASSWORD_RESET_POLICY
    model = ResetToken

    def _owner_clause(self, owner: User) -> Any:
        return ResetToken.user_id == owner.user_id

    def _new_row(self, owner: User, token_hash: str, expires: datetime) -> ResetToken:
        return ResetToken(user_id=owner.user_id, token_hash=token_hash, expires=expires)

    async def request_reset(self, email: str) -> IssuedToken | None:
        """Issue a reset token and email it.

        Returns None when no account has ``email``; callers must not reveal that.
        """
        user = await _user_by_email(self.session, email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return None

        token, expires = await self._store_new_token(user)
        await self.session.commit()

        url = self.build_url(token)
        delivery = await self.mailer.send_password_reset_email(user.email, url, user.name)
        logger.info(
            "Password reset token issued",
            user_id=str(user.user_id),
            fallback_used=delivery.fallback_used,
        )
        return IssuedToken(token=token, url=url, expires=expires, delivery=delivery)

    async def reset_password(self, token: str, new_password: str) -> User:
        """Consume ``token`` and set the owner's password.

        Raises:
            ValidationError: Password shorter than the minimum length.
            TokenNotFound: Token unknown or used. Also raised when its account was deleted.
            TokenExpired: Token past its expiry.
        """
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        row = await self._consume(token)
        user = await self.session.get(User, row.user_id)
        if user is None:
            await self.session.commit()
            raise TokenNotFound()

        user.password_hash = hash_password(new_password)
        await self.session.commit()
        logger.info("Password reset", user_id=str(user.user_id))
        return user


class EmailVerificationService(SingleUseTokenService):
    policy = EMAIL_VERIFICATION_POLICY
    model = VerificationToken

    def _owner_clause(self, owner: str) -> Any:
        return VerificationToken.identifier == owner

    def _new_row(self, owner: str, token_hash: str, expires: datetime) -> VerificationToken:
        return VerificationToken(identifier=owner, token_hash=token_hash, expires=expires)

    async def issue(self, email: str, name: str | None = None) -> IssuedToken:
        """Issue a verification token for ``email`` and mark the account unverified."""
        user = await _user_by_email(self.session, email)
        if user is not None:
            user.email_verified_at = None
            user.status = USER_STATUS_PENDING
            name = name or user.name

        token, expires = await self._store_new_token(email)
        await self.session.commit()

        url = self.build_url(token)
        delivery = await self.mailer.send_verification_email(email, url, name)
        logger.info("Verification token issued", fallback_used=delivery.fallback_used)
        return IssuedToken(token=token, url=url, expires=expires, delivery=delivery)

    async def resend(self, email: str) -> IssuedToken | None:
        """Reissue a verification email for an unverified account.

        Returns None for unknown or already verified accounts.
        """
        user = await _user_by_email(self.session, email)
        if user is None:
            logger.info("Verification resend requested for unknown email")
            return None
        if user.email_verified_at is not None:
            logger.info("Verification resend requested for verified account")
            return None
        return await self.issue(user.email, user.name)

    async def verify(self, token: str) -> User:
        """Consume ``token`` and mark its account verified.

        Raises:
            TokenNotFound: Token unknown or used. Also raised when its account was deleted.
            TokenExpired: Token past its expiry.
        """
        row = await self._consume(token)
        user = await _user_by_email(self.session, row.identifier)
        if user is None:
            await self.session.commit()
            raise TokenNotFound()

        if user.email_verified_at is None:
            user.email_verified_at = self.clock()
            user.status = USER_STATUS_ACTIVE
        await self.session.commit()
        logger.info("Email verified", user_id=str(user.user_id))
        return user


async def _user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()
