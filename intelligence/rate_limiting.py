"""
Pacing policies for the harvest loop.

The harvester only talks to the ``RateLimiter`` protocol: it reports each
product's outcome and asks the limiter to wait before the next one. Swapping
the adaptive delay for a token bucket does not touch selection or alerting.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Protocol

from config.config import HarvestConfig

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class RateLimiter(Protocol):
    def reset(self) -> None: ...

    def record(self, success: bool) -> None: ...

    async def wait(self) -> float: ...


class AdaptiveDelayLimiter:
    """
    Delay between products based on the rolling success rate
    (successes / products attempted so far). A healthy source is paced faster.
    """

    def __init__(
        self,
        delay_tiers: list[tuple[float, float]] | None = None,
        fallback_delay: float = 2.5,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.delay_tiers = delay_tiers if delay_tiers is not None else HarvestConfig().delay_tiers
        self.fallback_delay = fallback_delay
        self._sleep = sleep
        self.successes = 0
        self.attempts = 0

    @classmethod
    def from_config(cls, config: HarvestConfig, sleep: SleepFn = asyncio.sleep) -> "AdaptiveDelayLimiter":
        return cls(config.delay_tiers, config.fallback_delay_seconds, sleep)

    @property
    def success_rate(self) -> float:
        if self.attempts == 0:
            return 0.0
        return self.successes / self.attempts

    def delay_for(self, success_rate: float) -> float:
        """Seconds to wait for a given success rate; thresholds are exclusive."""
        for threshold, delay in self.delay_tiers:
            if success_rate > threshold:
                return delay
        return self.fallback_delay

    def reset(self) -> None:
        self.successes = 0
        self.attempts = 0

    def record(self, success: bool) -> None:
        self.attempts += 1
        if success:
            self.successes += 1

    async def wait(self) -> float:
        delay = self.delay_for(self.success_rate)
        logger.debug(f"Pacing {delay:.1f}s (success rate {self.success_rate:.2f})")
        await self._sleep(delay)
        return delay


class TokenBucketLimiter:
    """Classic token bucket: ``rate`` tokens per second up to ``capacity``."""

    def __init__(
        self,
        rate: float,
        capacity: int = 1,
        sleep: SleepFn = asyncio.sleep,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        if rate <= 0:
            raise ValueError("rate must be positive")
        self.rate = rate
        self.capacity = capacity
        self._sleep = sleep
        self._monotonic = monotonic
        self._tokens = float(capacity)
        self._last = monotonic()

    def _refill(self) -> None:
        now = self._monotonic()
        self._tokens = min(self.capacity, self._tokens + (now - self._last) * self.rate)
        self._last = now

    def reset(self) -> None:
        self._tokens = float(self.capacity)
        self._last = self._monotonic()

    def record(self, success: bool) -> None:
        # Outcome does not change the bucket's pace
        pass

    async def wait(self) -> float:
        self._refill()
        delay = 0.0
        if self._tokens < 1:
            delay = (1 - self._tokens) / self.rate
            await self._sleep(delay)
            self._refill()
        self._tokens = max(0.0, self._tokens - 1)
        return delay
