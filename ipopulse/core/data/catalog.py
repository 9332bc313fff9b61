"""Listing catalog: the set of public offerings eligible for bid collection."""

from __future__ import annotations

import threading
import uuid
from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

import duckdb
from duckdb import DuckDBPyConnection
from loguru import logger

from ipopulse.core.data.schema import LISTINGS_TABLE
from ipopulse.core.data.storage.timeseries import now_ms
from ipopulse.core.exceptions import CatalogError
from ipopulse.core.models import Listing, ListingStats, SeriesClass

_LISTING_FIELDS = (
    "symbol",
    "company_name",
    "series_class",
    "status",
    "issue_start_date",
    "issue_end_date",
    "issue_size",
    "issue_price",
    "sr_no",
    "is_bse",
    "lot_size",
    "last_updated",
)
_SELECT = f"SELECT {', '.join(_LISTING_FIELDS)} FROM {LISTINGS_TABLE.name}"


@runtime_checkable
class ListingCatalog(Protocol):
    """Read and write access to tracked listings."""

    def list_active_listings(self, series_class: SeriesClass) -> list[Listing]: ...

    def upsert_listing(self, listing: Listing) -> str: ...

    def get_by_symbol(self, symbol: str) -> Listing | None: ...

    def list_listings(
        self, status: str | None = None, series_class: SeriesClass | None = None
    ) -> list[Listing]: ...

    def stats(self) -> ListingStats: ...


def _listing_from_row(row: Sequence[Any]) -> Listing:
    values = dict(zip(_LISTING_FIELDS, row, strict=True))
    values["series_class"] = SeriesClass.parse(values["series_class"])
    values["sr_no"] = values["sr_no"] or 0
    return Listing(**values)


class DuckDBListingCatalog:
    """:class:`ListingCatalog` over the ``listings`` table."""

    def __init__(self, conn: DuckDBPyConnection) -> None:
        self._conn = conn
        self._write_lock = threading.Lock()
        LISTINGS_TABLE.ensure(conn)

    def _query(self, sql: str, params: Sequence[Any] = ()) -> list[Listing]:
        cursor = self._conn.cursor()
        try:
            rows = cursor.execute(sql, list(params)).fetchall()
        except duckdb.Error as exc:
            raise CatalogError(f"Listing query failed: {exc}") from exc
        finally:
            cursor.close()
        return [_listing_from_row(row) for row in rows]

    def list_active_listings(self, series_class: SeriesClass) -> list[Listing]:
        """Listings of ``series_class`` whose status contains ``active`` (any case)."""

        return self._query(
            f"{_SELECT} WHERE series_class = ? AND status ILIKE '%active%' ORDER BY sr_no, symbol",
            [SeriesClass.parse(series_class).value],
        )

    def list_listings(
        self, status: str | None = None, series_class: SeriesClass | None = None
    ) -> list[Listing]:
        clauses: list[str] = []
        params: list[Any] = []
        if status:
            clauses.append("status = ?")
            params.append(status)
        if series_class is not None:
            clauses.append("series_class = ?")
            params.append(SeriesClass.parse(series_class).value)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        return self._query(f"{_SELECT}{where} ORDER BY last_updated DESC, symbol", params)

    def get_by_symbol(self, symbol: str) -> Listing | None:
        listings = self._query(f"{_SELECT} WHERE symbol = ?", [symbol])
        return listings[0] if listings else None

    def upsert_listing(self, listing: Listing | Mapping[str, Any]) -> str:
        """Insert or overwrite the listing keyed by ``symbol``; returns its id."""

        if not isinstance(listing, Listing):
            listing = Listing(**listing)
        values = listing.model_dump()
        values["series_class"] = listing.series_class.value
        values["last_updated"] = now_ms()

        with self._write_lock:
            cursor = self._conn.cursor()
            try:
                cursor.begin()
                existing = cursor.execute(
                    f"SELECT id FROM {LISTINGS_TABLE.name} WHERE symbol = ?", [listing.symbol]
                ).fetchone()
                if existing is None:
                    listing_id = uuid.uuid4().hex
                    columns = ("id", *_LISTING_FIELDS)
                    cursor.execute(
                        f"INSERT INTO {LISTINGS_TABLE.name} ({', '.join(columns)}) "
                        f"VALUES ({', '.join('?' for _ in columns)})",
                        [listing_id, *(values[name] for name in _LISTING_FIELDS)],
                    )
                else:
                    listing_id = existing[0]
                    updates = [name for name in _LISTING_FIELDS if name != "symbol"]
                    cursor.execute(
                        f"UPDATE {LISTINGS_TABLE.name} SET {', '.join(f'{name} = ?' for name in updates)} "
                        "WHERE symbol = ?",
                        [*(values[name] for name in updates), listing.symbol],
                    )
                cursor.commit()
            except duckdb.Error as exc:
                try:
                    cursor.rollback()
                except duckdb.Error:
                    logger.debug(f"Rollback after failed upsert of {listing.symbol} was a no-op")
                raise CatalogError(f"Failed to upsert listing {listing.symbol}: {exc}") from exc
            finally:
                cursor.close()
        return listing_id

    def stats(self) -> ListingStats:
        listings = self.list_listings()
        statuses = [listing.status.lower() for listing in listings]
        return ListingStats(
            total=len(listings),
            active=sum(1 for status in statuses if "active" in status or "open" in status),
            upcoming=sum(1 for status in statuses if "upcoming" in status),
            closed=sum(1 for status in statuses if "closed" in status),
            mainboard=sum(1 for listing in listings if listing.series_class is SeriesClass.MAINBOARD),
            sme=sum(1 for listing in listings if listing.series_class is SeriesClass.SME),
        )


__all__ = ["DuckDBListingCatalog", "ListingCatalog"]
