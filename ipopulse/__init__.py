"""ipopulse - IPO subscription data collector.

Collects listing and live bid-category data from the exchange website and
keeps it as bounded time series in DuckDB.
"""

import asyncio
from typing import Any

from ipopulse.core.config import IpoPulseConfig
from ipopulse.core.models import SeriesClass
from ipopulse.core.runtime import IpoPulseRuntime

__version__ = "0.1.0"

_runtime: IpoPulseRuntime | None = None


def get_runtime() -> IpoPulseRuntime:
    """Return the process-wide runtime, created from defaults on first use."""
    global _runtime
    if _runtime is None:
        _runtime = IpoPulseRuntime()
    return _runtime


def configure(config: IpoPulseConfig) -> IpoPulseRuntime:
    """Replace the process-wide runtime with one built from ``config``."""
    global _runtime
    if _runtime is not None:
        _runtime.close()
    _runtime = IpoPulseRuntime(config)
    return _runtime


def collect_bids(series: str | SeriesClass = SeriesClass.MAINBOARD) -> dict[str, Any]:
    """Run one bid collection pass synchronously.

    Returns:
        ``{success, count, errors, error?}``
    """
    return asyncio.run(get_runtime().scheduler.trigger_bid_collection(series))


def refresh_listings() -> dict[str, Any]:
    """Refresh the listing catalog synchronously."""
    return asyncio.run(get_runtime().scheduler.trigger_listing_refresh())


__all__ = [
    "IpoPulseConfig",
    "IpoPulseRuntime",
    "SeriesClass",
    "__version__",
    "collect_bids",
    "configure",
    "get_runtime",
    "refresh_listings",
]
