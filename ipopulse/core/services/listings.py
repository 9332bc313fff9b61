"""Refresh of the listing catalog from the exchange's upcoming-issues feed."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from loguru import logger
from pydantic import ValidationError

from ipopulse.core.data.catalog import ListingCatalog
from ipopulse.core.exceptions import IpoPulseError, PayloadFormatError
from ipopulse.core.logging import log_context
from ipopulse.core.models import Listing, ListingRefreshResult, SeriesClass
from ipopulse.core.upstream import ExchangeEndpoints, ResilientFetcher, SessionBootstrapper

_NON_DIGITS = re.compile(r"[^0-9]")


def clean_string_data(value: Any) -> str:
    """Strip one pair of surrounding quotes, unescape ``\\"`` and trim."""

    if value is None:
        return ""
    cleaned = str(value)
    if len(cleaned) >= 2 and cleaned.startswith('"') and cleaned.endswith('"'):
        cleaned = cleaned[1:-1]
    cleaned = cleaned.replace('\\"', '"')
    return cleaned.strip()


def parse_lot_size(value: Any) -> int | None:
    if value in (None, ""):
        return None
    digits = _NON_DIGITS.sub("", clean_string_data(value))
    return int(digits) if digits else None


def parse_sr_no(value: Any) -> int:
    if isinstance(value, str):
        try:
            return int(clean_string_data(value))
        except ValueError:
            return 0
    if isinstance(value, (int, float)):
        return int(value)
    return 0


def extract_items(payload: Any) -> list[Any]:
    """Accept ``{"data": [...]}`` or a bare array."""

    if isinstance(payload, list):
        return payload
    if isinstance(payload, Mapping) and isinstance(payload.get("data"), list):
        return payload["data"]
    raise PayloadFormatError(
        f"Unexpected upcoming issues payload: {type(payload).__name__}", section="data"
    )


def build_listing(item: Mapping[str, Any]) -> Listing | None:
    """Map one cleaned feed item onto a :class:`Listing`; ``None`` when unusable."""

    symbol = clean_string_data(item.get("symbol"))
    company_name = clean_string_data(item.get("companyName"))
    if not symbol or not company_name:
        return None
    try:
        series_class = SeriesClass.parse(clean_string_data(item.get("series")) or "EQ")
    except ValueError:
        return None
    is_bse = clean_string_data(item.get("isBse"))
    return Listing(
        symbol=symbol,
        company_name=company_name,
        series_class=series_class,
        status=clean_string_data(item.get("status")) or "Unknown",
        issue_start_date=clean_string_data(item.get("issueStartDate")),
        issue_end_date=clean_string_data(item.get("issueEndDate")),
        issue_size=clean_string_data(item.get("issueSize")),
        issue_price=clean_string_data(item.get("issuePrice")),
        sr_no=parse_sr_no(item.get("sr_no")),
        is_bse=is_bse or None,
        lot_size=parse_lot_size(item.get("lotSize")),
    )


class ListingRefresher:
    """Pulls the upcoming-issues list and upserts every usable item."""

    def __init__(
        self,
        catalog: ListingCatalog,
        bootstrapper: SessionBootstrapper,
        fetcher: ResilientFetcher,
    ) -> None:
        self.catalog = catalog
        self.bootstrapper = bootstrapper
        self.fetcher = fetcher
        self.endpoints = ExchangeEndpoints(bootstrapper.upstream.base_url)

    async def refresh(self) -> ListingRefreshResult:
        with log_context(job="listing-refresh"):
            try:
                session = await self.bootstrapper.bootstrap(self.endpoints.upcoming_issues_page_path)
                result = await self.fetcher.fetch(session, self.endpoints.upcoming_issues_url)
                if not result.success:
                    raise result.to_exception()
                items = extract_items(result.payload)
            except IpoPulseError as exc:
                logger.bind(error_code=exc.error_code).error(f"Listing refresh failed: {exc.message}")
                return ListingRefreshResult(succeeded=False, error_message=exc.message)

            logger.info(f"Upcoming issues feed returned {len(items)} items")
            processed = errors = 0
            for item in items:
                if not isinstance(item, Mapping):
                    errors += 1
                    continue
                try:
                    listing = build_listing(item)
                except ValidationError as exc:
                    logger.warning(f"Skipping listing with invalid fields: {exc}")
                    errors += 1
                    continue
                if listing is None:
                    logger.warning(f"Skipping listing with missing fields: {dict(item)}")
                    errors += 1
                    continue
                try:
                    self.catalog.upsert_listing(listing)
                except IpoPulseError as exc:
                    logger.error(f"Could not store listing {listing.symbol}: {exc.message}")
                    errors += 1
                    continue
                logger.debug(
                    f"Stored listing {listing.symbol} ({listing.series_class.value}, {listing.status}, "
                    f"lot size {listing.lot_size or 'not set'})"
                )
                processed += 1

            logger.info(f"Listing refresh finished: {processed} stored, {errors} skipped")
            return ListingRefreshResult(
                succeeded=True, processed_count=processed, error_count=errors, total=len(items)
            )


__all__ = [
    "ListingRefresher",
    "build_listing",
    "clean_string_data",
    "extract_items",
    "parse_lot_size",
    "parse_sr_no",
]
