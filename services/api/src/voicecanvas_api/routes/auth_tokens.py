"""Password reset and email verification endpoints.

Responses never reveal whether an email belongs to an account.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from voicecanvas_shared.config import get_settings
from voicecanvas_shared.db.connection import get_session
from voicecanvas_shared.email import Mailer
from voicecanvas_shared.logging import get_logger

from ..dependencies.services import get_mailer
from ..models.auth import ForgotPasswordRequest, ResendVerificationRequest, ResetPasswordRequest
from ..models.base import MessageResponse
from ..services.token_service import EmailVerificationService, PasswordResetService

logger = get_logger(__name__)
router = APIRouter(prefix="/api/auth", tags=["Auth"])

FORGOT_PASSWORD_MESSAGE = (
    "If this email is registered, you will receive instructions to reset your password."
)
RESEND_VERIFICATION_MESSAGE = (
    "If this email is registered and not yet verified, a new verification email has been sent."
)


def _password_resets(session: AsyncSession, mailer: Mailer) -> PasswordResetService:
    return PasswordResetService(session, mailer, get_settings().app_url)


def _verifications(session: AsyncSession, mailer: Mailer) -> EmailVerificationService:
    return EmailVerificationService(session, mailer, get_settings().app_url)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    session: AsyncSession = Depends(get_session),
    mailer: Mailer = Depends(get_mailer),
) -> MessageResponse:
    await _password_resets(session, mailer).request_reset(body.email)
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: ResetPasswordRequest,
    session: AsyncSession = Depends(get_session),
    mailer: Mailer = Depends(get_mailer),
) -> MessageResponse:
    await _password_resets(session, mailer).reset_password(body.token, body.password)
    return MessageResponse(message="Password has been reset successfully")


@router.get("/verify-email", response_model=MessageResponse)
async def verify_email(
    token: str = Query(min_length=1, description="Token from the verification link"),
    session: AsyncSession = Depends(get_session),
    mailer: Mailer = Depends(get_mailer),
) -> MessageResponse:
    await _verifications(session, mailer).verify(token)
    return MessageResponse(message="Email verified successfully")


@router.post("/resend-verification", response_model=MessageResponse)
async def resend_verification(
    body: ResendVerificationRequest,
    session: AsyncSession = Depends(get_session),
    mailer: Mailer = Depends(get_mailer),
) -> MessageResponse:
    await _verifications(session, mailer).resend(body.email)
    return MessageResponse(message=RESEND_VERIFICATION_MESSAGE)
