"""Shared database module."""

from .connection import (
    DatabaseConnection,
    create_engine,
    create_session_factory,
    get_database_url,
    get_db,
    get_session,
    normalize_database_url,
    set_db,
)
from .models import (
    Base,
    CharacterQuota,
    ProcessedBillingEvent,
    ResetToken,
    Subscription,
    TimestampMixin,
    User,
    VerificationToken,
    generate_uuid,
    utcnow,
)

__all__ = [
    "Base",
    "CharacterQuota",
    "DatabaseConnection",
    "ProcessedBillingEvent",
    "ResetToken",
    "Subscription",
    "TimestampMixin",
    "User",
    "VerificationToken",
    "create_engine",
    "create_session_factory",
    "generate_uuid",
    "get_database_url",
    "get_db",
    "get_session",
    "normalize_database_url",
    "set_db",
    "utcnow",
]
