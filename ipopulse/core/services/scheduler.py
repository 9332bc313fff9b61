"""Interval scheduling and manual triggers for the collection jobs."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from ipopulse.core.config import DelayConfig, SchedulerConfig
from ipopulse.core.logging import log_context
from ipopulse.core.models import SeriesClass
from ipopulse.core.services.collection import BidCollector
from ipopulse.core.services.listings import ListingRefresher
from ipopulse.core.upstream import Pacer

JobAction = Callable[[], Awaitable[dict[str, Any]]]
Clock = Callable[[], float]


@dataclass
class IntervalJob:
    """A named coroutine run every ``interval_seconds``."""

    name: str
    interval_seconds: float
    action: JobAction
    next_run: float = 0.0
    runs: int = 0
    last_result: dict[str, Any] | None = field(default=None, repr=False)

    def is_due(self, now: float) -> bool:
        return now >= self.next_run


def _failure_payload(exc: Exception) -> dict[str, Any]:
    return {"success": False, "error": f"{type(exc).__name__}: {exc}"}


class CollectionScheduler:
    """Runs the listing refresh and per-class bid collection on a fixed interval.

    Jobs run one at a time on the event loop. A job that raises is logged and
    rescheduled like any other; the loop itself only stops through :meth:`stop`.
    The ``trigger_*`` methods run the same work on demand and always return a
    payload dictionary.
    """

    def __init__(
        self,
        collector: BidCollector,
        refresher: ListingRefresher,
        config: SchedulerConfig | None = None,
        *,
        delays: DelayConfig | None = None,
        pacer: Pacer | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.collector = collector
        self.refresher = refresher
        self.config = config or SchedulerConfig()
        self.delays = delays or DelayConfig()
        self.series_classes = [SeriesClass.parse(value) for value in self.config.series_classes]
        self._pacer = pacer or Pacer()
        self._clock = clock or time.monotonic
        self._stop_event: asyncio.Event | None = None
        self._task: asyncio.Task[None] | None = None
        self.jobs = self._build_jobs()

    def _build_jobs(self) -> list[IntervalJob]:
        interval = self.config.interval_minutes * 60
        jobs: list[IntervalJob] = []
        if self.config.refresh_listings:
            jobs.append(IntervalJob("refresh-listings", interval, self.trigger_listing_refresh))
        for series_class in self.series_classes:
            jobs.append(
                IntervalJob(
                    f"collect-bids-{series_class.value.lower()}",
                    interval,
                    lambda series_class=series_class: self.trigger_bid_collection(series_class),
                )
            )
        return jobs

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def trigger_bid_collection(self, series_class: SeriesClass | str = SeriesClass.MAINBOARD) -> dict[str, Any]:
        """Run one bid collection pass now; ``{success, count, errors, error?}``."""

        try:
            result = await self.collector.run_collection(series_class)
        except Exception as exc:
            logger.exception(f"Bid collection trigger failed: {exc}")
            return _failure_payload(exc)
        return result.to_payload()

    async def trigger_listing_refresh(self) -> dict[str, Any]:
        try:
            result = await self.refresher.refresh()
        except Exception as exc:
            logger.exception(f"Listing refresh trigger failed: {exc}")
            return _failure_payload(exc)
        return result.to_payload()

    async def trigger_sequential_refresh(self) -> dict[str, Any]:
        """Refresh listings, wait the settle delay, then collect bids for each tracked class."""

        with log_context(job="sequential-refresh"):
            logger.info("Starting sequential refresh: listings first, then bids")
            listings = await self.trigger_listing_refresh()
            await self._pacer.wait(self.delays.settle, "collecting bid details")
            bids: dict[str, dict[str, Any]] = {}
            for series_class in self.series_classes:
                bids[series_class.value] = await self.trigger_bid_collection(series_class)
            succeeded = bool(listings.get("success")) and all(payload.get("success") for payload in bids.values())
            logger.info(f"Sequential refresh finished (success={succeeded})")
            return {"success": succeeded, "listings": listings, "bids": bids}

    async def run_pending(self) -> list[tuple[str, dict[str, Any]]]:
        """Run every job that is due and reschedule it."""

        completed: list[tuple[str, dict[str, Any]]] = []
        for job in self.jobs:
            now = self._clock()
            if not job.is_due(now):
                continue
            job.next_run = now + job.interval_seconds
            with log_context(job=job.name):
                logger.info(f"Running scheduled job {job.name}")
                try:
                    payload = await job.action()
                except Exception as exc:
                    logger.exception(f"Scheduled job {job.name} failed: {exc}")
                    payload = _failure_payload(exc)
            job.runs += 1
            job.last_result = payload
            completed.append((job.name, payload))
        return completed

    def seconds_until_next(self) -> float:
        if not self.jobs:
            return self.config.interval_minutes * 60
        return max(0.0, min(job.next_run for job in self.jobs) - self._clock())

    async def run_forever(self, *, run_immediately: bool = False) -> None:
        """Loop until :meth:`stop` is called."""

        if self._stop_event is None:
            self._stop_event = asyncio.Event()
        stop_event = self._stop_event
        start = self._clock()
        for job in self.jobs:
            job.next_run = start if run_immediately else start + job.interval_seconds
        logger.info(
            f"Scheduler started with {len(self.jobs)} jobs every {self.config.interval_minutes:g} minutes"
        )
        while not stop_event.is_set():
            await self.run_pending()
            if stop_event.is_set():
                break
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.seconds_until_next())
            except TimeoutError:
                pass
        self._stop_event = None
        logger.info("Scheduler stopped")

    def start(self, *, run_immediately: bool = False) -> asyncio.Task[None]:
        if self.running:
            raise RuntimeError("Scheduler is already running")
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self.run_forever(run_immediately=run_immediately))
        return self._task

    async def stop(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        if self._task is not None:
            await self._task
            self._task = None


__all__ = ["CollectionScheduler", "IntervalJob"]
