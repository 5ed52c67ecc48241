"""Pytest configuration and fixtures for API tests."""

import os
from collections.abc import AsyncGenerator, Callable, Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

TEST_SESSION_SECRET = "test-session-secret"
TEST_APP_URL = "http://voicecanvas.test"
PRICE_IDS = {
    "yearly": "price_yearly",
    "monthly": "price_monthly",
    "tenThousandChars": "price_10k",
    "millionChars": "price_1m",
    "threeMillionChars": "price_3m",
}

# Settings are read on import of the app module
os.environ.update(
    {
        "ENVIRONMENT": "development",
        "APP_URL": TEST_APP_URL,
        "AUTH_SESSION_SECRET": TEST_SESSION_SECRET,
        "LOG_JSON_FORMAT": "false",
        "LOG_LEVEL": "WARNING",
        "STRIPE_YEARLY_PRICE_ID": PRICE_IDS["yearly"],
        "STRIPE_MONTHLY_PRICE_ID": PRICE_IDS["monthly"],
        "STRIPE_10K_PRICE_ID": PRICE_IDS["tenThousandChars"],
        "STRIPE_1M_PRICE_ID": PRICE_IDS["millionChars"],
        "STRIPE_3M_PRICE_ID": PRICE_IDS["threeMillionChars"],
        "RESEND_API_KEY": "",
    }
)

from voicecanvas_shared.config import refresh_settings  # noqa: E402
from voicecanvas_shared.db.connection import DatabaseConnection, get_session, set_db  # noqa: E402
from voicecanvas_shared.db.models import (  # noqa: E402
    CharacterQuota,
    Subscription,
    User,
    utcnow,
)
from voicecanvas_shared.email import DeliveryResult, Mailer  # noqa: E402

from voicecanvas_api.dependencies.auth import issue_session_token  # noqa: E402
from voicecanvas_api.main import create_app  # noqa: E402
from voicecanvas_api.services.plan_catalog import PlanCatalog  # noqa: E402


# ============================================================================
# Settings
# ============================================================================


@pytest.fixture(autouse=True)
def settings():
    """Fresh settings for every test, picking up any monkeypatched env vars."""
    return refresh_settings()


@pytest.fixture
def production(monkeypatch):
    """Switch the settings to the production environment."""
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_test")
    return refresh_settings()


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db(tmp_path) -> AsyncGenerator[DatabaseConnection, None]:
    """A throwaway SQLite database installed as the global connection."""
    database = DatabaseConnection(url=f"sqlite+aiosqlite:///{tmp_path / 'voicecanvas.db'}")
    await database.create_tables()
    set_db(database)
    yield database
    set_db(None)
    await database.close()


@pytest.fixture
async def session(db) -> AsyncGenerator[AsyncSession, None]:
    """A session for driving services directly."""
    async with db.session_factory() as s:
        yield s


@pytest.fixture
def create_user(db) -> Callable[..., Any]:
    """Factory inserting a user with optional subscription and quota rows."""

    async def _create(
        email: str = "user@example.com",
        name: str | None = "Test User",
        subscription: dict[str, Any] | None = None,
        quota: dict[str, Any] | None = None,
        **fields: Any,
    ) -> User:
        async with db.session() as s:
            user = User(email=email, name=name, **fields)
            s.add(user)
            await s.flush()
            if subscription is not None:
                s.add(Subscription(user_id=user.user_id, **subscription))
            if quota is not None:
                quota.setdefault("last_updated", utcnow())
                s.add(CharacterQuota(user_id=user.user_id, **quota))
        return user

    return _create


@pytest.fixture
def load_plan(db) -> Callable[..., Any]:
    """Read back a user with their subscription and quota from a new session."""

    async def _load(email: str) -> tuple[User | None, Subscription | None, CharacterQuota | None]:
        async with db.session_factory() as s:
            user = await s.scalar(select(User).where(User.email == email))
            if user is None:
                return None, None, None
            subscription = await s.scalar(
                select(Subscription).where(Subscription.user_id == user.user_id)
            )
            quota = await s.scalar(
                select(CharacterQuota).where(CharacterQuota.user_id == user.user_id)
            )
            return user, subscription, quota

    return _load


# ============================================================================
# Clock
# ============================================================================


class FrozenClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2025, 1, 15, 12, 0, 0))


# ============================================================================
# Collaborator Fakes
# ============================================================================


class RecordingEmailClient:
    """Email client that keeps every message it is asked to send."""

    def __init__(self, success: bool = True):
        self.success = success
        self.sent: list[dict[str, Any]] = []

    async def send(self, to: str, subject: str, html: str, link: str | None = None) -> DeliveryResult:
        self.sent.append({"to": to, "subject": subject, "html": html, "link": link})
        if not self.success:
            return DeliveryResult(success=False, error="delivery failed")
        return DeliveryResult(success=True, message_id=f"msg-{len(self.sent)}")

    def links_to(self, email: str) -> list[str]:
        return [m["link"] for m in self.sent if m["to"] == email]


@pytest.fixture
def outbox() -> RecordingEmailClient:
    return RecordingEmailClient()


@pytest.fixture
def fallback_outbox() -> RecordingEmailClient:
    return RecordingEmailClient()


@pytest.fixture
def mailer(outbox, fallback_outbox) -> Mailer:
    return Mailer(primary=outbox, fallback=fallback_outbox)


@pytest.fixture
def failing_mailer(fallback_outbox) -> Mailer:
    """Mailer whose primary client rejects every message."""
    return Mailer(primary=RecordingEmailClient(success=False), fallback=fallback_outbox)


@pytest.fixture
def catalog() -> PlanCatalog:
    return PlanCatalog(PRICE_IDS)


@pytest.fixture
def mock_gateway():
    """Stripe gateway stand-in with async lookups."""
    gateway = MagicMock()
    gateway.configured = True
    gateway.customer_email = AsyncMock(return_value=None)
    gateway.first_line_item_price = AsyncMock(return_value=None)
    gateway.subscription_price = AsyncMock(return_value=None)
    gateway.create_checkout_session = AsyncMock(return_value="cs_test_123")
    return gateway


@pytest.fixture
def mock_speech_service():
    service = MagicMock()
    service.synthesize = AsyncMock()
    service.synthesize_with_fallback = AsyncMock()
    return service


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def app(db, mailer, catalog, mock_gateway, mock_speech_service) -> FastAPI:
    """The real application wired to the test database and fakes.

    The lifespan is replaced so no connection is attempted at startup.
    """

    @asynccontextmanager
    async def mock_lifespan(app: FastAPI):
        app.state.db_initialized = True
        yield

    application = create_app()
    application.router.lifespan_context = mock_lifespan
    application.state.db_initialized = True
    application.state.mailer = mailer
    application.state.plan_catalog = catalog
    application.state.stripe_gateway = mock_gateway
    application.state.speech_service = mock_speech_service

    async def override_get_session():
        async with db.session() as s:
            yield s

    application.dependency_overrides[get_session] = override_get_session
    return application


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """Create a synchronous test client."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    """Build an Authorization header carrying a signed session."""

    def _headers(email: str = "user@example.com", name: str | None = "Test User") -> dict[str, str]:
        token = issue_session_token(email, TEST_SESSION_SECRET, name=name)
        return {"Authorization": f"Bearer {token}"}

    return _headers
