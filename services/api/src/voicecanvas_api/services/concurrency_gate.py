"""Per-identity admission control for speech synthesis.

The gate lives for the lifetime of the process and is created with the app.
Nothing is persisted or shared between processes.
"""

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voicecanvas_shared.db.models import Subscription, User, utcnow
from voicecanvas_shared.logging import get_logger

from ..dependencies.auth import ANONYMOUS_IDENTITY

logger = get_logger(__name__)

ANONYMOUS_LIMIT = 1
BASE_CONCURRENT_LIMIT = 3
VIP_MULTIPLIER = 2


class LimitResolver(Protocol):
    async def limit_for(self, identity: str) -> int: ...


class SubscriptionLimitResolver:
    """Anonymous callers get one slot, signed-in users three, active subscribers six."""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        clock: Callable[[], datetime] = utcnow,
    ):
        self._session_factory = session_factory
        self._clock = clock

    async def limit_for(self, identity: str) -> int:
        if identity == ANONYMOUS_IDENTITY:
            return ANONYMOUS_LIMIT

        async with self._session_factory() as session:
            result = await session.execute(
                select(Subscription)
                .join(User, User.user_id == Subscription.user_id)
                .where(User.email == identity)
            )
            subscription = result.scalar_one_or_none()

        if subscription is not None and subscription.is_active_at(self._clock()):
            return BASE_CONCURRENT_LIMIT * VIP_MULTIPLIER
        return BASE_CONCURRENT_LIMIT


class _Slots:
    __slots__ = ("condition", "in_flight", "waiting")

    def __init__(self) -> None:
        self.condition = asyncio.Condition()
        self.in_flight = 0
        self.waiting = 0

    @property
    def idle(self) -> bool:
        return self.in_flight == 0 and self.waiting == 0


class ConcurrencyGate:
    """Bounds simultaneous operations per identity.

    ``acquire`` waits until the identity is under its limit and never fails.
    Each successful ``acquire`` must be paired with exactly one ``release``;
    ``slot()`` guarantees that on every exit path.
    """

    def __init__(self, limit_resolver: LimitResolver, fallback_limit: int = ANONYMOUS_LIMIT):
        self._resolver = limit_resolver
        self._fallback_limit = fallback_limit
        self._slots: dict[str, _Slots] = {}

    async def _limit(self, identity: str) -> int:
        try:
            return max(1, await self._resolver.limit_for(identity))
        except Exception:
            logger.exception(
                "Limit lookup failed, using fallback limit",
                identity=identity,
                fallback_limit=self._fallback_limit,
            )
            return self._fallback_limit

    async def acquire(self, identity: str) -> None:
        slots = self._slots.get(identity)
        if slots is None:
            slots = self._slots[identity] = _Slots()

        slots.waiting += 1
        try:
            limit = await self._limit(identity)
            async with slots.condition:
                await slots.condition.wait_for(lambda: slots.in_flight < limit)
                slots.in_flight += 1
        finally:
            slots.waiting -= 1
            self._discard_if_idle(identity, slots)

    async def release(self, identity: str) -> None:
        slots = self._slots.get(identity)
        if slots is None or slots.in_flight == 0:
            logger.warning("Release without matching acquire", identity=identity)
            return

        async with slots.condition:
            slots.in_flight -= 1
            # Waiters may hold different limits, so wake all of them
            slots.condition.notify_all()
        self._discard_if_idle(identity, slots)

    @asynccontextmanager
    async def slot(self, identity: str) -> AsyncIterator[None]:
        """Hold one slot for the duration of the block."""
        await self.acquire(identity)
        try:
            yield
        finally:
            await self.release(identity)

    def in_flight(self, identity: str) -> int:
        slots = self._slots.get(identity)
        return slots.in_flight if slots else 0

    def snapshot(self) -> dict[str, int]:
        """In-flight counts per identity, for diagnostics."""
        return {identity: s.in_flight for identity, s in self._slots.items() if s.in_flight}

    def _discard_if_idle(self, identity: str, slots: _Slots) -> None:
        if slots.idle and self._slots.get(identity) is slots:
            del self._slots[identity]
