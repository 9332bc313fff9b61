from __future__ import annotations

import pytest

from ipopulse.core.data.catalog import DuckDBListingCatalog, ListingCatalog
from ipopulse.core.models import Listing, SeriesClass


@pytest.fixture
def catalog(memory_conn) -> DuckDBListingCatalog:
    return DuckDBListingCatalog(memory_conn)


def _listing(symbol: str, status: str = "Active", series_class: SeriesClass = SeriesClass.MAINBOARD, **extra) -> Listing:
    return Listing(symbol=symbol, company_name=f"{symbol} Ltd", series_class=series_class, status=status, **extra)


def test_catalog_satisfies_protocol(catalog) -> None:
    assert isinstance(catalog, ListingCatalog)


def test_active_listings_match_status_substring_case_insensitively(catalog) -> None:
    catalog.upsert_listing(_listing("ABCL", status="Active"))
    catalog.upsert_listing(_listing("DEF", status="Issue ACTIVE now", sr_no=2))
    catalog.upsert_listing(_listing("GHI", status="Closed"))
    catalog.upsert_listing(_listing("SMEX", status="active", series_class=SeriesClass.SME))

    mainboard = catalog.list_active_listings(SeriesClass.MAINBOARD)

    assert [listing.symbol for listing in mainboard] == ["ABCL", "DEF"]
    assert [listing.symbol for listing in catalog.list_active_listings(SeriesClass.SME)] == ["SMEX"]


def test_upsert_is_keyed_by_symbol(catalog) -> None:
    first_id = catalog.upsert_listing(_listing("ABCL", status="Upcoming", lot_size=50))
    second_id = catalog.upsert_listing(_listing("ABCL", status="Active", lot_size=60, issue_price="Rs.100 to Rs.105"))

    listing = catalog.get_by_symbol("ABCL")
    assert first_id == second_id
    assert listing.status == "Active"
    assert listing.lot_size == 60
    assert listing.issue_price == "Rs.100 to Rs.105"
    assert listing.last_updated > 0
    assert len(catalog.list_listings()) == 1


def test_upsert_accepts_mappings(catalog) -> None:
    catalog.upsert_listing({"symbol": "MAP", "company_name": "Mapping Ltd", "series_class": "SME"})

    listing = catalog.get_by_symbol("MAP")
    assert listing.series_class is SeriesClass.SME
    assert listing.status == "Unknown"


def test_list_listings_filters(catalog) -> None:
    catalog.upsert_listing(_listing("A", status="Active"))
    catalog.upsert_listing(_listing("B", status="Closed"))
    catalog.upsert_listing(_listing("C", status="Active", series_class=SeriesClass.SME))

    assert {listing.symbol for listing in catalog.list_listings(status="Active")} == {"A", "C"}
    assert [listing.symbol for listing in catalog.list_listings(series_class=SeriesClass.SME)] == ["C"]
    assert [listing.symbol for listing in catalog.list_listings("Active", SeriesClass.MAINBOARD)] == ["A"]
    assert catalog.get_by_symbol("NOPE") is None


def test_stats(catalog) -> None:
    catalog.upsert_listing(_listing("A", status="Active"))
    catalog.upsert_listing(_listing("B", status="Upcoming"))
    catalog.upsert_listing(_listing("C", status="Closed", series_class=SeriesClass.SME))

    stats = catalog.stats()

    assert (stats.total, stats.active, stats.upcoming, stats.closed) == (3, 1, 1, 1)
    assert (stats.mainboard, stats.sme) == (2, 1)
