"""Tests for password reset and email verification tokens."""

import asyncio
from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import pytest
from sqlalchemy import func, select

from voicecanvas_shared.db.models import ResetToken, VerificationToken

from voicecanvas_api.errors import TokenExpired, TokenNotFound, ValidationError
from voicecanvas_api.services.token_service import (
    EmailVerificationService,
    PasswordResetService,
    hash_password,
    hash_token,
    verify_password,
)

EMAIL = "reader@example.com"
APP_URL = "http://voicecanvas.test"


def token_from(url: str) -> str:
    return parse_qs(urlparse(url).query)["token"][0]


async def count_rows(db, model) -> int:
    async with db.session_factory() as s:
        return await s.scalar(select(func.count()).select_from(model))


@pytest.fixture
def resets(session, mailer, clock) -> PasswordResetService:
    return PasswordResetService(session, mailer, APP_URL, clock=clock)


@pytest.fixture
def verifications(session, mailer, clock) -> EmailVerificationService:
    return EmailVerificationService(session, mailer, APP_URL, clock=clock)


@pytest.mark.unit
def test_password_hashing_round_trip():
    hashed = hash_password("correct horse")
    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


@pytest.mark.unit
class TestPasswordReset:
    async def test_issue_stores_digest_and_emails_link(self, resets, create_user, outbox, db, clock):
        await create_user(EMAIL, name="Reader")

        issued = await resets.request_reset(EMAIL)

        assert issued.url.startswith(f"{APP_URL}/reset-password?token=")
        assert token_from(issued.url) == issued.token
        assert issued.expires == clock.now + timedelta(hours=1)
        assert outbox.links_to(EMAIL) == [issued.url]
        assert outbox.sent[0]["subject"] == "Reset Your VoiceCanvas Password"

        async with db.session_factory() as s:
            stored = await s.scalar(select(ResetToken))
        assert stored.token_hash == hash_token(issued.token)
        assert stored.token_hash != issued.token

    async def test_unknown_email_issues_nothing(self, resets, outbox, db):
        assert await resets.request_reset("ghost@example.com") is None
        assert outbox.sent == []
        assert await count_rows(db, ResetToken) == 0

    async def test_token_works_exactly_once(self, resets, create_user, load_plan):
        await create_user(EMAIL)
        issued = await resets.request_reset(EMAIL)

        await resets.reset_password(issued.token, "new-secret")

        user, _, _ = await load_plan(EMAIL)
        assert verify_password("new-secret", user.password_hash)
        with pytest.raises(TokenNotFound):
            await resets.reset_password(issued.token, "another-secret")

    async def test_concurrent_redemptions_succeed_once(self, create_user, load_plan, mailer, clock, db):
        await create_user(EMAIL)
        async with db.session_factory() as s:
            issued = await PasswordResetService(s, mailer, APP_URL, clock=clock).request_reset(EMAIL)

        async def redeem(password: str) -> str:
            async with db.session_factory() as s:
                service = PasswordResetService(s, mailer, APP_URL, clock=clock)
                await service.reset_password(issued.token, password)
            return password

        results = await asyncio.gather(
            redeem("first-secret"), redeem("second-secret"), return_exceptions=True
        )

        winners = [r for r in results if isinstance(r, str)]
        assert len(winners) == 1
        user, _, _ = await load_plan(EMAIL)
        assert verify_password(winners[0], user.password_hash)
        assert await count_rows(db, ResetToken) == 0

    async def test_reissue_invalidates_previous_token(self, resets, create_user, db):
        await create_user(EMAIL)
        first = await resets.request_reset(EMAIL)
        second = await resets.request_reset(EMAIL)

        assert await count_rows(db, ResetToken) == 1
        with pytest.raises(TokenNotFound):
            await resets.reset_password(first.token, "new-secret")
        await resets.reset_password(second.token, "new-secret")

    async def test_expired_token_is_deleted(self, resets, create_user, clock, db):
        await create_user(EMAIL)
        issued = await resets.request_reset(EMAIL)
        clock.advance(hours=1, seconds=1)

        with pytest.raises(TokenExpired):
            await resets.reset_password(issued.token, "new-secret")

        assert await count_rows(db, ResetToken) == 0
        with pytest.raises(TokenNotFound):
            await resets.reset_password(issued.token, "new-secret")

    async def test_short_password_rejected_and_token_kept(self, resets, create_user, db):
        await create_user(EMAIL)
        issued = await resets.request_reset(EMAIL)

        with pytest.raises(ValidationError):
            await resets.reset_password(issued.token, "12345")

        assert await count_rows(db, ResetToken) == 1

    async def test_unknown_token(self, resets):
        with pytest.raises(TokenNotFound):
            await resets.reset_password("never-issued", "new-secret")

    async def test_failed_delivery_falls_back(
        self, session, create_user, clock, failing_mailer, fallback_outbox
    ):
        await create_user(EMAIL)
        service = PasswordResetService(session, failing_mailer, APP_URL, clock=clock)

        issued = await service.request_reset(EMAIL)

        assert issued is not None
        assert fallback_outbox.links_to(EMAIL) == [issued.url]


@pytest.mark.unit
class TestEmailVerification:
    async def test_issue_marks_user_unverified(self, verifications, create_user, load_plan, clock, outbox):
        await create_user(EMAIL, status="active", email_verified_at=clock.now - timedelta(days=1))

        issued = await verifications.issue(EMAIL)

        assert issued.url.startswith(f"{APP_URL}/verify-email?token=")
        assert issued.expires == clock.now + timedelta(hours=24)
        assert outbox.sent[0]["subject"] == "Verify Your VoiceCanvas Account"
        user, _, _ = await load_plan(EMAIL)
        assert user.email_verified_at is None
        assert user.status == "pending"

    async def test_verify_activates_account_once(self, verifications, create_user, load_plan, clock):
        await create_user(EMAIL)
        issued = await verifications.issue(EMAIL)

        await verifications.verify(issued.token)

        user, _, _ = await load_plan(EMAIL)
        assert user.status == "active"
        assert user.email_verified_at == clock.now
        with pytest.raises(TokenNotFound):
            await verifications.verify(issued.token)

    async def test_already_verified_is_success(self, verifications, create_user, load_plan, clock):
        await create_user(EMAIL)
        first = await verifications.issue(EMAIL)
        await verifications.verify(first.token)
        verified_at = clock.now

        # A token issued directly for a verified address still succeeds
        clock.advance(minutes=5)
        second, _ = await verifications._store_new_token(EMAIL)
        await verifications.session.commit()
        await verifications.verify(second)

        user, _, _ = await load_plan(EMAIL)
        assert user.email_verified_at == verified_at

    async def test_expired_verification_token(self, verifications, create_user, clock, db):
        await create_user(EMAIL)
        issued = await verifications.issue(EMAIL)
        clock.advance(hours=25)

        with pytest.raises(TokenExpired):
            await verifications.verify(issued.token)
        assert await count_rows(db, VerificationToken) == 0

    async def test_resend_purges_older_tokens(self, verifications, create_user, db):
        await create_user(EMAIL)
        first = await verifications.issue(EMAIL)
        second = await verifications.resend(EMAIL)

        assert await count_rows(db, VerificationToken) == 1
        with pytest.raises(TokenNotFound):
            await verifications.verify(first.token)
        await verifications.verify(second.token)

    async def test_resend_skips_unknown_and_verified(self, verifications, create_user, clock, outbox):
        await create_user(EMAIL, status="active", email_verified_at=clock.now)

        assert await verifications.resend(EMAIL) is None
        assert await verifications.resend("ghost@example.com") is None
        assert outbox.sent == []

    async def test_token_for_deleted_account(self, verifications, clock):
        token, _ = await verifications._store_new_token("gone@example.com")
        await verifications.session.commit()

        with pytest.raises(TokenNotFound):
            await verifications.verify(token)
