"""Test-email endpoint, available outside production only."""

import secrets

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, EmailStr

from voicecanvas_shared.config import get_settings
from voicecanvas_shared.email import Mailer

from ..dependencies.services import get_mailer

router = APIRouter(prefix="/api", tags=["Diagnostics"])


class EmailCheckResponse(BaseModel):
    success: bool
    message: str
    fallback_used: bool
    message_id: str | None = None


@router.post("/test-email", response_model=EmailCheckResponse)
async def send_test_email(
    email: EmailStr = Query(default="test@example.com"),
    mailer: Mailer = Depends(get_mailer),
) -> EmailCheckResponse:
    """Send a sample verification email through the configured mailer."""
    app_url = get_settings().app_url.rstrip("/")
    link = f"{app_url}/verify-email?token=test-token-{secrets.token_hex(8)}"
    result = await mailer.send_verification_email(email, link, "Test User")
    return EmailCheckResponse(
        success=result.success,
        message=f"Test email {'logged' if result.fallback_used else 'sent'} for {email}",
        fallback_used=result.fallback_used,
        message_id=result.message_id,
    )
