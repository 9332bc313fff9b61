from __future__ import annotations

import asyncio

import pytest

from ipopulse.core.config import DelayConfig, DelayRange, SchedulerConfig
from ipopulse.core.models import CollectionRunResult, ListingRefreshResult, SeriesClass
from ipopulse.core.services import CollectionScheduler
from ipopulse.core.upstream import Pacer


class StubCollector:
    def __init__(self, events: list[str], fail_on: SeriesClass | None = None) -> None:
        self.events = events
        self.fail_on = fail_on

    async def run_collection(self, series_class):
        series_class = SeriesClass.parse(series_class)
        self.events.append(f"bids:{series_class.value}")
        if series_class is self.fail_on:
            raise RuntimeError("collector exploded")
        return CollectionRunResult(succeeded=True, processed_count=2, error_count=1)


class StubRefresher:
    def __init__(self, events: list[str]) -> None:
        self.events = events

    async def refresh(self):
        self.events.append("listings")
        return ListingRefreshResult(succeeded=True, processed_count=5, total=5)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def events() -> list[str]:
    return []


def _scheduler(events, *, fail_on=None, clock=None, sleeper=None, delays=None, **config) -> CollectionScheduler:
    return CollectionScheduler(
        StubCollector(events, fail_on),
        StubRefresher(events),
        SchedulerConfig(**config),
        delays=delays or DelayConfig.zero(),
        pacer=Pacer(sleep=sleeper) if sleeper else None,
        clock=clock,
    )


def test_jobs_cover_refresh_and_each_series_class(events) -> None:
    scheduler = _scheduler(events)

    assert [job.name for job in scheduler.jobs] == ["refresh-listings", "collect-bids-eq", "collect-bids-sme"]
    assert all(job.interval_seconds == 3600 for job in scheduler.jobs)


@pytest.mark.asyncio
async def test_trigger_bid_collection_payload(events) -> None:
    payload = await _scheduler(events).trigger_bid_collection("SME")

    assert payload == {"success": True, "count": 2, "errors": 1}
    assert events == ["bids:SME"]


@pytest.mark.asyncio
async def test_trigger_never_raises(events) -> None:
    payload = await _scheduler(events, fail_on=SeriesClass.MAINBOARD).trigger_bid_collection(SeriesClass.MAINBOARD)

    assert payload["success"] is False
    assert "collector exploded" in payload["error"]


@pytest.mark.asyncio
async def test_sequential_refresh_orders_work_and_settles(events, sleeper) -> None:
    delays = DelayConfig(
        bootstrap=DelayRange.fixed(0), request=DelayRange.fixed(0), retry=DelayRange.fixed(0),
        between_listings=DelayRange.fixed(0), settle=DelayRange.fixed(30),
    )
    scheduler = _scheduler(events, sleeper=sleeper, delays=delays)

    payload = await scheduler.trigger_sequential_refresh()

    assert events == ["listings", "bids:EQ", "bids:SME"]
    assert sleeper.calls == [30]
    assert payload["success"] is True
    assert payload["listings"] == {"success": True, "count": 5, "errors": 0, "total": 5}
    assert set(payload["bids"]) == {"EQ", "SME"}


@pytest.mark.asyncio
async def test_run_pending_runs_due_jobs_and_survives_failures(events) -> None:
    clock = FakeClock()
    scheduler = _scheduler(events, fail_on=SeriesClass.SME, clock=clock, interval_minutes=60)

    first = await scheduler.run_pending()
    assert [name for name, _ in first] == ["refresh-listings", "collect-bids-eq", "collect-bids-sme"]
    assert first[2][1]["success"] is False

    clock.now = 1800
    assert await scheduler.run_pending() == []

    clock.now = 3600
    second = await scheduler.run_pending()
    assert len(second) == 3
    assert all(job.runs == 2 for job in scheduler.jobs)


@pytest.mark.asyncio
async def test_run_forever_stops_on_request(events) -> None:
    scheduler = _scheduler(events, interval_minutes=60)

    scheduler.start(run_immediately=True)
    for _ in range(50):
        if len(events) == 3:
            break
        await asyncio.sleep(0)
    await scheduler.stop()

    assert events == ["listings", "bids:EQ", "bids:SME"]
    assert not scheduler.running


@pytest.mark.asyncio
async def test_start_twice_is_rejected(events) -> None:
    scheduler = _scheduler(events)
    scheduler.start()
    try:
        with pytest.raises(RuntimeError):
            scheduler.start()
    finally:
        await scheduler.stop()
