"""Normalisation, schemas and persistence for collected exchange data."""

from .catalog import DuckDBListingCatalog, ListingCatalog
from .normalizer import (
    NormalizationIssue,
    NormalizationResult,
    format_numeric_value,
    normalize_payload,
)
from .schema import BID_SERIES_TABLE, LISTINGS_TABLE, ensure_ingestion_tables
from .storage import TimeSeriesStore

__all__ = [
    "BID_SERIES_TABLE",
    "DuckDBListingCatalog",
    "LISTINGS_TABLE",
    "ListingCatalog",
    "NormalizationIssue",
    "NormalizationResult",
    "TimeSeriesStore",
    "ensure_ingestion_tables",
    "format_numeric_value",
    "normalize_payload",
]
