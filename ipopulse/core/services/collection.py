"""Bid collection orchestrator."""

from __future__ import annotations

from loguru import logger

from ipopulse.core.config import DelayConfig
from ipopulse.core.data.catalog import ListingCatalog
from ipopulse.core.data.normalizer import normalize_payload
from ipopulse.core.data.storage.timeseries import TimeSeriesStore, now_ms
from ipopulse.core.exceptions import IpoPulseError, PersistenceError
from ipopulse.core.logging import log_context
from ipopulse.core.models import BidCategoryRecord, CollectionRunResult, Listing, ListingCycleResult, SeriesClass
from ipopulse.core.upstream import ExchangeEndpoints, Pacer, ResilientFetcher, SessionBootstrapper


class BidCollector:
    """Walks the active listings of a series class and merges their bid rows.

    Listings are handled one after another, each with its own freshly
    bootstrapped session, separated by a randomised pause. A failing listing is
    logged and counted; it never stops the run.
    """

    def __init__(
        self,
        catalog: ListingCatalog,
        store: TimeSeriesStore,
        bootstrapper: SessionBootstrapper,
        fetcher: ResilientFetcher,
        *,
        delays: DelayConfig | None = None,
        pacer: Pacer | None = None,
    ) -> None:
        self.catalog = catalog
        self.store = store
        self.bootstrapper = bootstrapper
        self.fetcher = fetcher
        self.delays = delays or DelayConfig()
        self.endpoints = ExchangeEndpoints(bootstrapper.upstream.base_url)
        self._pacer = pacer or Pacer()

    async def run_collection(self, series_class: SeriesClass | str) -> CollectionRunResult:
        """Collect bid data for every active listing of ``series_class``."""

        series_class = SeriesClass.parse(series_class)
        with log_context(series_class=series_class.value):
            try:
                listings = self.catalog.list_active_listings(series_class)
            except IpoPulseError as exc:
                logger.error(f"Could not read active {series_class.value} listings: {exc.message}")
                return CollectionRunResult(succeeded=False, error_message=exc.message)
            except Exception as exc:
                logger.exception(f"Unexpected error while reading active {series_class.value} listings: {exc}")
                return CollectionRunResult(succeeded=False, error_message=f"{type(exc).__name__}: {exc}")

            if not listings:
                logger.info(f"No active {series_class.value} listings to collect")
                return CollectionRunResult(succeeded=True)

            logger.info(f"Collecting bid data for {len(listings)} active {series_class.value} listings")
            processed = errors = row_errors = 0
            for position, listing in enumerate(listings):
                if position > 0:
                    await self._pacer.wait(self.delays.between_listings, f"collecting {listing.symbol}")
                outcome = await self.collect_listing(listing, series_class)
                row_errors += outcome.row_errors
                if outcome.succeeded:
                    processed += 1
                else:
                    errors += 1

            logger.info(
                f"{series_class.value} collection finished: {processed} processed, {errors} failed, "
                f"{row_errors} rows skipped"
            )
            return CollectionRunResult(
                succeeded=True,
                processed_count=processed,
                error_count=errors,
                row_error_count=row_errors,
            )

    async def collect_listing(
        self, listing: Listing, series_class: SeriesClass | None = None
    ) -> ListingCycleResult:
        """Run bootstrap, fetch, normalise and merge for one listing."""

        series_class = series_class or listing.series_class
        symbol = listing.symbol
        with log_context(symbol=symbol, series_class=series_class.value):
            try:
                session = await self.bootstrapper.bootstrap(
                    self.endpoints.issue_page_path(symbol, series_class)
                )
                result = await self.fetcher.fetch(session, self.endpoints.bid_data_url(symbol, series_class))
                if not result.success:
                    raise result.to_exception()

                normalized = normalize_payload(symbol, series_class, result.payload)
                written, failed_writes = self._merge(normalized.records)
            except IpoPulseError as exc:
                logger.bind(error_code=exc.error_code).error(f"Bid collection failed for {symbol}: {exc.message}")
                return ListingCycleResult(
                    symbol=symbol,
                    succeeded=False,
                    error_message=exc.message,
                    error_code=exc.error_code,
                )
            except Exception as exc:
                logger.exception(f"Unexpected error while collecting {symbol}: {exc}")
                return ListingCycleResult(symbol=symbol, succeeded=False, error_message=str(exc))

            logger.info(
                f"Stored {written} of {len(normalized.records)} category rows for {symbol} "
                f"(update time {normalized.update_time or 'n/a'})"
            )
            return ListingCycleResult(
                symbol=symbol,
                succeeded=True,
                records_written=written,
                row_errors=len(normalized.issues) + failed_writes,
            )

    def _merge(self, records: list[BidCategoryRecord]) -> tuple[int, int]:
        """Upsert each record on its own; a failed row is logged and skipped."""

        timestamp = now_ms()
        written = failed = 0
        for record in records:
            try:
                self.store.upsert(record, timestamp)
            except PersistenceError as exc:
                failed += 1
                logger.bind(error_code=exc.error_code).warning(
                    f"Could not store {record.category} (sr_no {record.sr_no}): {exc.message}"
                )
                continue
            written += 1
        return written, failed


__all__ = ["BidCollector"]
