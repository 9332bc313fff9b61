"""Data models."""

from .bids import BidCategoryRecord, BidSnapshot, BidSummary, SeriesPoint, TimeSeriesEntity
from .listing import Listing, ListingStats
from .market import TOTAL_SR_NO, SeriesClass, SeriesMetric, metrics_for
from .results import CollectionRunResult, ListingCycleResult, ListingRefreshResult

__all__ = [
    "BidCategoryRecord",
    "BidSnapshot",
    "BidSummary",
    "CollectionRunResult",
    "Listing",
    "ListingCycleResult",
    "ListingRefreshResult",
    "ListingStats",
    "SeriesClass",
    "SeriesMetric",
    "SeriesPoint",
    "TOTAL_SR_NO",
    "TimeSeriesEntity",
    "metrics_for",
]
