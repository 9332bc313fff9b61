"""Collection services: bid orchestration, listing refresh and scheduling."""

from .collection import BidCollector
from .listings import ListingRefresher, clean_string_data
from .scheduler import CollectionScheduler, IntervalJob

__all__ = [
    "BidCollector",
    "CollectionScheduler",
    "IntervalJob",
    "ListingRefresher",
    "clean_string_data",
]
