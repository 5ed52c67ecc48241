"""Transactional email delivery.

``ResendEmailClient`` posts to the Resend HTTP API. ``LoggingEmailClient`` writes
the message to the log instead, and is used when Resend is not configured or a
send fails. Neither raises on delivery failure; both return a ``DeliveryResult``.
"""

from dataclasses import dataclass
from typing import Protocol
from uuid import uuid4

import httpx

from ..config import Settings
from ..logging import get_logger
from .templates import (
    PASSWORD_RESET_SUBJECT,
    VERIFICATION_SUBJECT,
    render_password_reset_email,
    render_verification_email,
)

logger = get_logger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one send attempt."""

    success: bool
    message_id: str | None = None
    fallback_used: bool = False
    error: str | None = None


class EmailClient(Protocol):
    async def send(self, to: str, subject: str, html: str, link: str | None = None) -> DeliveryResult: ...


class ResendEmailClient:
    """Sends mail through the Resend API."""

    def __init__(
        self,
        api_key: str,
        sender: str,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._api_key = api_key
        self._sender = sender
        self._timeout = timeout
        self._http_client = http_client

    async def send(self, to: str, subject: str, html: str, link: str | None = None) -> DeliveryResult:
        payload = {"from": self._sender, "to": [to], "subject": subject, "html": html}
        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    RESEND_API_URL, json=payload, headers=headers, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(RESEND_API_URL, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Resend delivery failed", to=to, subject=subject, error=str(e))
            return DeliveryResult(success=False, error=str(e))

        try:
            body = response.json()
        except ValueError as e:
            logger.warning(
                "Resend returned an unreadable response", to=to, subject=subject, error=str(e)
            )
            return DeliveryResult(success=False, error="Unreadable response from Resend")
        if not isinstance(body, dict):
            logger.warning("Resend returned an unexpected response", to=to, subject=subject)
            return DeliveryResult(success=False, error="Unexpected response from Resend")

        message_id = body.get("id")
        logger.info("Email sent", to=to, subject=subject, message_id=message_id)
        return DeliveryResult(success=True, message_id=message_id)


class LoggingEmailClient:
    """Logs messages instead of sending them.

    The embedded link is only written to the log when ``reveal_links`` is set,
    which the factory does outside production.
    """

    def __init__(self, reveal_links: bool = False):
        self._reveal_links = reveal_links

    async def send(self, to: str, subject: str, html: str, link: str | None = None) -> DeliveryResult:
        if self._reveal_links and link:
            logger.info("Email not sent, logging link instead", to=to, subject=subject, link=link)
        else:
            logger.info("Email not sent", to=to, subject=subject)
        return DeliveryResult(
            success=True,
            message_id=f"logged-{uuid4().hex}",
            fallback_used=True,
        )


class Mailer:
    """Renders and delivers the account emails, falling back to the log."""

    def __init__(self, primary: EmailClient | None, fallback: EmailClient):
        self._primary = primary
        self._fallback = fallback

    async def deliver(self, to: str, subject: str, html: str, link: str | None = None) -> DeliveryResult:
        if self._primary is not None:
            result = await self._primary.send(to, subject, html, link=link)
            if result.success:
                return result
            logger.warning("Primary email delivery failed, using fallback", to=to, error=result.error)
        return await self._fallback.send(to, subject, html, link=link)

    async def send_verification_email(
        self, to: str, verification_url: str, name: str | None = None
    ) -> DeliveryResult:
        html = render_verification_email(verification_url, name)
        return await self.deliver(to, VERIFICATION_SUBJECT, html, link=verification_url)

    async def send_password_reset_email(
        self, to: str, reset_url: str, name: str | None = None
    ) -> DeliveryResult:
        html = render_password_reset_email(reset_url, name)
        return await self.deliver(to, PASSWORD_RESET_SUBJECT, html, link=reset_url)


def create_mailer(settings: Settings) -> Mailer:
    """Build the mailer for the configured environment."""
    fallback = LoggingEmailClient(reveal_links=not settings.is_production)
    if not settings.email.resend_api_key:
        logger.warning("RESEND_API_KEY not configured, emails will only be logged")
        return Mailer(primary=None, fallback=fallback)
    primary = ResendEmailClient(
        api_key=settings.email.resend_api_key,
        sender=settings.email.email_from,
        timeout=settings.email.resend_timeout_seconds,
    )
    return Mailer(primary=primary, fallback=fallback)
