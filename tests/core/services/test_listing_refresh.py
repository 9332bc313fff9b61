from __future__ import annotations

import httpx
import pytest

from ipopulse.core.data.catalog import DuckDBListingCatalog
from ipopulse.core.models import SeriesClass
from ipopulse.core.services import ListingRefresher
from ipopulse.core.services.listings import clean_string_data, parse_lot_size, parse_sr_no
from ipopulse.core.upstream import ResilientFetcher, SessionBootstrapper

UPCOMING_API = "/api/all-upcoming-issues"


@pytest.fixture
def catalog(memory_conn) -> DuckDBListingCatalog:
    return DuckDBListingCatalog(memory_conn)


@pytest.fixture
def refresher(exchange, catalog, upstream_config, zero_delays, pacer) -> ListingRefresher:
    bootstrapper = SessionBootstrapper(upstream_config, zero_delays, client_factory=exchange.client_factory, pacer=pacer)
    fetcher = ResilientFetcher(upstream_config, zero_delays, client_factory=exchange.client_factory, pacer=pacer)
    return ListingRefresher(catalog, bootstrapper, fetcher)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ('"ABCL"', "ABCL"),
        ('  Alpha \\"Beta\\" Ltd ', 'Alpha "Beta" Ltd'),
        (None, ""),
        (42, "42"),
        ('"', '"'),
    ],
)
def test_clean_string_data(raw, expected) -> None:
    assert clean_string_data(raw) == expected


def test_lot_size_and_serial_parsing() -> None:
    assert parse_lot_size("1,200 shares") == 1200
    assert parse_lot_size("n/a") is None
    assert parse_lot_size(None) is None
    assert parse_sr_no('"7"') == 7
    assert parse_sr_no("x") == 0
    assert parse_sr_no(3) == 3
    assert parse_sr_no(None) == 0


@pytest.mark.asyncio
async def test_refresh_upserts_cleaned_items(exchange, catalog, refresher) -> None:
    exchange.json(
        UPCOMING_API,
        {
            "data": [
                {
                    "symbol": '"ABCL"',
                    "companyName": "ABC Labs Limited",
                    "series": "EQ",
                    "issueStartDate": "08-Jan-2025",
                    "issueEndDate": "10-Jan-2025",
                    "status": "Active",
                    "issueSize": "1000000",
                    "issuePrice": "Rs.100 to Rs.105",
                    "sr_no": "1",
                    "lotSize": "142 Shares",
                },
                {"symbol": "SMEX", "companyName": "Small Co", "series": "SME", "sr_no": 2},
                {"symbol": "", "companyName": "No Symbol Ltd"},
                "garbage",
            ]
        },
    )

    result = await refresher.refresh()

    assert result.to_payload() == {"success": True, "count": 2, "errors": 2, "total": 4}
    abcl = catalog.get_by_symbol("ABCL")
    assert abcl.lot_size == 142
    assert abcl.sr_no == 1
    assert abcl.is_active
    smex = catalog.get_by_symbol("SMEX")
    assert smex.series_class is SeriesClass.SME
    assert smex.status == "Unknown"
    assert smex.lot_size is None
    assert [request.url.path for request in exchange.requests] == [
        "/",
        "/market-data/all-upcoming-issues-ipo",
        UPCOMING_API,
    ]


@pytest.mark.asyncio
async def test_refresh_accepts_bare_array(exchange, catalog, refresher) -> None:
    exchange.json(UPCOMING_API, [{"symbol": "ONE", "companyName": "One Ltd"}])

    result = await refresher.refresh()

    assert result.processed_count == 1
    assert catalog.get_by_symbol("ONE").series_class is SeriesClass.MAINBOARD


@pytest.mark.asyncio
async def test_refresh_rejects_unexpected_payload(exchange, refresher) -> None:
    exchange.json(UPCOMING_API, {"rows": []})

    result = await refresher.refresh()

    assert result.succeeded is False
    assert "Unexpected upcoming issues payload" in result.error_message


@pytest.mark.asyncio
async def test_refresh_reports_upstream_failure(exchange, refresher) -> None:
    exchange.add(UPCOMING_API, httpx.Response(403), httpx.Response(403))

    result = await refresher.refresh()

    assert result.to_payload()["success"] is False
    assert "403" in result.error_message
