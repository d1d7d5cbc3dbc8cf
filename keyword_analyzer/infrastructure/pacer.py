"""Outbound call pacing.

Two interchangeable policies are provided.  ``TokenBucketPacer`` hands out
``capacity`` permits per ``period`` and refills the bucket in one step at
period boundaries.  ``FixedDelayPacer`` spaces successive permits by a flat
delay.  Neither ever rejects a caller; they only delay it.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Protocol

from keyword_analyzer.config import Settings

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class Pacer(Protocol):
    async def acquire(self) -> None:
        """Suspend until one outbound call is permitted."""


class TokenBucketPacer:
    def __init__(
        self,
        capacity: int = 50,
        period: float = 60.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if period <= 0:
            raise ValueError("period must be positive")
        self.capacity = capacity
        self.period = period
        self._clock = clock
        self._sleep = sleep
        self.tokens_remaining = capacity
        self.refill_timestamp = clock()

    def _refill(self, now: float) -> None:
        if now - self.refill_timestamp >= self.period:
            self.tokens_remaining = self.capacity
            self.refill_timestamp = now

    async def acquire(self) -> None:
        while True:
            now = self._clock()
            self._refill(now)
            if self.tokens_remaining > 0:
                self.tokens_remaining -= 1
                return
            wait = self.refill_timestamp + self.period - now
            logger.info("Rate budget exhausted, waiting %.1fs for refill", wait)
            await self._sleep(max(wait, 0.0))


class FixedDelayPacer:
    def __init__(
        self,
        delay: float = 1.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if delay < 0:
            raise ValueError("delay must not be negative")
        self.delay = delay
        self._clock = clock
        self._sleep = sleep
        self._next_slot: float | None = None

    async def acquire(self) -> None:
        now = self._clock()
        slot = now if self._next_slot is None else max(now, self._next_slot)
        # Reserve the slot before suspending so concurrent callers queue up behind it.
        self._next_slot = slot + self.delay
        wait = slot - now
        if wait > 0:
            await self._sleep(wait)


def build_pacer(settings: Settings, *, sleep: Sleep = asyncio.sleep) -> Pacer:
    if settings.pacer_mode == "fixed_delay":
        return FixedDelayPacer(settings.fixed_delay, sleep=sleep)
    return TokenBucketPacer(
        settings.rate_limit_capacity,
        settings.rate_limit_period,
        sleep=sleep,
    )


__all__ = ["FixedDelayPacer", "Pacer", "TokenBucketPacer", "build_pacer"]
