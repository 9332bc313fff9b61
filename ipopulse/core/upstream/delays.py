"""Randomised courtesy delays between upstream requests."""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable

from loguru import logger

from ipopulse.core.config import DelayRange

Sleeper = Callable[[float], Awaitable[None]]


class Pacer:
    """Suspends the current task for a random duration drawn from a :class:`DelayRange`."""

    def __init__(self, sleep: Sleeper | None = None, rng: random.Random | None = None) -> None:
        self._sleep = sleep or asyncio.sleep
        self._rng = rng or random.Random()
        self.total_delay = 0.0

    def draw(self, delay_range: DelayRange) -> float:
        if delay_range.max_seconds <= delay_range.min_seconds:
            return delay_range.min_seconds
        return self._rng.uniform(delay_range.min_seconds, delay_range.max_seconds)

    async def wait(self, delay_range: DelayRange, reason: str = "") -> float:
        """Sleep for a drawn delay and return the number of seconds waited."""

        delay = self.draw(delay_range)
        if delay <= 0:
            return 0.0
        if reason:
            logger.debug(f"Waiting {delay:.1f}s before {reason}")
        await self._sleep(delay)
        self.total_delay += delay
        return delay


__all__ = ["Pacer", "Sleeper"]
