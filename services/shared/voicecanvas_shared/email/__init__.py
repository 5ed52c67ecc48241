"""Transactional email module."""

from .client import (
    DeliveryResult,
    EmailClient,
    LoggingEmailClient,
    Mailer,
    ResendEmailClient,
    create_mailer,
)

__all__ = [
    "DeliveryResult",
    "EmailClient",
    "LoggingEmailClient",
    "Mailer",
    "ResendEmailClient",
    "create_mailer",
]
