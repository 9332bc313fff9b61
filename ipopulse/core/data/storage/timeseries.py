"""Bounded time-series merge store for bid category records.

Each ``(symbol, category, sr_no)`` key within a series class owns one row of
``bid_category_series``. Repeated sightings append to its per-metric series,
which are capped at ``max_points`` with the oldest points evicted first. The
flat latest snapshot and the per-symbol summary are derived from those rows.
"""

from __future__ import annotations

import json
import threading
import time
import uuid
from collections.abc import Iterator, Sequence
from contextlib import contextmanager, suppress
from typing import Any

import duckdb
from duckdb import DuckDBPyConnection
from loguru import logger

from ipopulse.core.data.normalizer import to_float
from ipopulse.core.data.schema import BID_SERIES_TABLE
from ipopulse.core.exceptions import PersistenceError
from ipopulse.core.models import (
    BidCategoryRecord,
    BidSnapshot,
    BidSummary,
    SeriesClass,
    SeriesMetric,
    SeriesPoint,
    TimeSeriesEntity,
)

DEFAULT_MAX_POINTS = 100

_COLUMNS = "id, series_class, symbol, category, sr_no, share_offered, series, update_time, last_updated"
_KEY_PREDICATE = "series_class = ? AND symbol = ? AND category = ? AND sr_no = ?"


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""

    return int(time.time() * 1000)


class _KeyedLocks:
    """One lock per key; unrelated keys never wait on each other.

    A key's lock is dropped once no thread holds or waits on it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[tuple[str, ...], tuple[threading.Lock, int]] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @contextmanager
    def hold(self, key: tuple[str, ...]) -> Iterator[None]:
        with self._guard:
            lock, users = self._locks.get(key, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[key] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with self._guard:
                _, users = self._locks[key]
                if users == 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, users - 1)


def _entity_from_row(row: Sequence[Any]) -> TimeSeriesEntity:
    raw_series = row[6]
    payload = json.loads(raw_series) if isinstance(raw_series, str) else (raw_series or {})
    series = {
        name: [SeriesPoint.from_dict(point) for point in points]
        for name, points in payload.items()
    }
    return TimeSeriesEntity(
        id=row[0],
        series_class=SeriesClass(row[1]),
        symbol=row[2],
        category=row[3],
        sr_no=row[4],
        share_offered=row[5],
        series=series,
        update_time=row[7],
        last_updated=int(row[8]),
    )


class TimeSeriesStore:
    """DuckDB-backed store of :class:`TimeSeriesEntity` rows."""

    def __init__(self, conn: DuckDBPyConnection, *, max_points: int = DEFAULT_MAX_POINTS) -> None:
        if max_points <= 0:
            raise ValueError("max_points must be positive")
        self._conn = conn
        self._max_points = max_points
        self._locks = _KeyedLocks()
        BID_SERIES_TABLE.ensure(conn)

    @property
    def max_points(self) -> int:
        return self._max_points

    @contextmanager
    def _cursor(self) -> Iterator[DuckDBPyConnection]:
        # DuckDB connections are not thread-safe; cursors are.
        cursor = self._conn.cursor()
        try:
            yield cursor
        finally:
            cursor.close()

    def upsert(self, record: BidCategoryRecord, now: int | None = None) -> str:
        """Merge ``record`` into its entity and return the entity id.

        A missing entity is created with one-point series. An existing one gets
        each metric appended (truncated to the newest ``max_points``) and its
        ``share_offered``/``update_time`` overwritten. ``last_updated`` is always
        set to ``now``.

        Raises:
            PersistenceError: if the read-modify-write could not be committed.
        """

        timestamp = now_ms() if now is None else now
        key = (record.series_class.value, record.symbol, record.category, record.sr_no)
        with self._locks.hold(key), self._cursor() as cursor:
            try:
                cursor.begin()
                row = cursor.execute(
                    f"SELECT {_COLUMNS} FROM {BID_SERIES_TABLE.name} WHERE {_KEY_PREDICATE}",
                    list(key),
                ).fetchone()
                if row is None:
                    entity = TimeSeriesEntity(
                        id=uuid.uuid4().hex,
                        series_class=record.series_class,
                        symbol=record.symbol,
                        category=record.category,
                        sr_no=record.sr_no,
                        share_offered=record.share_offered,
                        update_time=record.update_time,
                        last_updated=timestamp,
                    )
                    self._append_metrics(entity, record, timestamp)
                    cursor.execute(
                        f"INSERT INTO {BID_SERIES_TABLE.name} ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                        [
                            entity.id,
                            entity.series_class.value,
                            entity.symbol,
                            entity.category,
                            entity.sr_no,
                            entity.share_offered,
                            json.dumps(entity.series_payload()),
                            entity.update_time,
                            entity.last_updated,
                        ],
                    )
                else:
                    entity = _entity_from_row(row)
                    self._append_metrics(entity, record, timestamp)
                    entity.share_offered = record.share_offered
                    entity.update_time = record.update_time
                    entity.last_updated = timestamp
                    cursor.execute(
                        f"""
                        UPDATE {BID_SERIES_TABLE.name}
                        SET share_offered = ?, series = ?, update_time = ?, last_updated = ?
                        WHERE id = ?
                        """,
                        [
                            entity.share_offered,
                            json.dumps(entity.series_payload()),
                            entity.update_time,
                            entity.last_updated,
                            entity.id,
                        ],
                    )
                cursor.commit()
            except duckdb.Error as exc:
                with suppress(duckdb.Error):
                    cursor.rollback()
                raise PersistenceError(
                    f"Failed to upsert {record.symbol}/{record.category}: {exc}",
                    table=BID_SERIES_TABLE.name,
                    details={"sr_no": record.sr_no, "series_class": record.series_class.value},
                ) from exc
        return entity.id

    def upsert_many(self, records: Sequence[BidCategoryRecord], now: int | None = None) -> list[str]:
        """Upsert a normalised batch with one shared timestamp."""

        timestamp = now_ms() if now is None else now
        return [self.upsert(record, timestamp) for record in records]

    def _append_metrics(self, entity: TimeSeriesEntity, record: BidCategoryRecord, timestamp: int) -> None:
        for metric, value in record.metric_values().items():
            entity.append(metric, SeriesPoint(value=value, timestamp=timestamp), self._max_points)

    def _select(self, where: str = "", params: Sequence[Any] = (), suffix: str = "") -> list[TimeSeriesEntity]:
        query = f"SELECT {_COLUMNS} FROM {BID_SERIES_TABLE.name}"
        if where:
            query += f" WHERE {where}"
        query += f" {suffix or 'ORDER BY series_class, symbol, TRY_CAST(sr_no AS INTEGER), category'}"
        with self._cursor() as cursor:
            rows = cursor.execute(query, list(params)).fetchall()
        return [_entity_from_row(row) for row in rows]

    def get(self, series_class: SeriesClass, symbol: str, category: str, sr_no: str) -> TimeSeriesEntity | None:
        entities = self._select(_KEY_PREDICATE, [SeriesClass.parse(series_class).value, symbol, category, sr_no])
        return entities[0] if entities else None

    def list_by_symbol(self, symbol: str, series_class: SeriesClass | None = None) -> list[TimeSeriesEntity]:
        """Every entity of ``symbol``, ordered by row number."""

        if series_class is None:
            return self._select("symbol = ?", [symbol])
        return self._select("symbol = ? AND series_class = ?", [symbol, SeriesClass.parse(series_class).value])

    def list_by_symbol_and_category(self, symbol: str, category: str) -> list[TimeSeriesEntity]:
        return self._select("symbol = ? AND category = ?", [symbol, category])

    def list_by_symbol_and_sr_no(self, symbol: str, sr_no: str) -> list[TimeSeriesEntity]:
        return self._select("symbol = ? AND sr_no = ?", [symbol, sr_no])

    def list_updated_since(self, since_ms: int) -> list[TimeSeriesEntity]:
        return self._select("last_updated >= ?", [since_ms], "ORDER BY last_updated DESC, symbol, category")

    def latest(self, limit: int = 50) -> list[TimeSeriesEntity]:
        """The ``limit`` most recently updated entities across all symbols."""

        return self._select(suffix=f"ORDER BY last_updated DESC, symbol, category LIMIT {int(limit)}")

    def count(self) -> int:
        with self._cursor() as cursor:
            row = cursor.execute(f"SELECT COUNT(*) FROM {BID_SERIES_TABLE.name}").fetchone()
        return int(row[0]) if row else 0

    def snapshot(self, symbol: str, series_class: SeriesClass | None = None) -> list[BidSnapshot]:
        """Flat latest-value rows derived from the stored series."""

        return [BidSnapshot.from_entity(entity) for entity in self.list_by_symbol(symbol, series_class)]

    def summary(self, series_class: SeriesClass, symbol: str) -> BidSummary | None:
        """Aggregate the latest values of every category row of ``symbol``.

        The Total row is excluded from sums and counts; it restates the other
        rows and would double them.
        """

        series_class = SeriesClass.parse(series_class)
        entities = self.list_by_symbol(symbol, series_class)
        if not entities:
            return None
        categories = [entity for entity in entities if not entity.is_total]
        total_offered = sum(to_float(entity.share_offered) for entity in categories)
        total_bid = sum(to_float(entity.latest_value(SeriesMetric.SHARES_BID)) for entity in categories)
        total_applications = None
        if series_class is SeriesClass.SME:
            total_applications = sum(
                to_float(entity.latest_value(SeriesMetric.APPLICATION_COUNT)) for entity in categories
            )
        freshest = max(entities, key=lambda entity: entity.last_updated)
        return BidSummary(
            symbol=symbol,
            series_class=series_class,
            total_categories=len(categories),
            total_shares_offered=total_offered,
            total_shares_bid=total_bid,
            overall_subscription=(total_bid / total_offered) if total_offered > 0 else 0.0,
            last_updated=freshest.last_updated,
            update_time=freshest.update_time,
            total_applications=total_applications,
            time_series=tuple(entities),
        )

    def preferred_summary(self, symbol: str) -> BidSummary | None:
        """Main-board summary when present, otherwise the SME one."""

        summary = self.summary(SeriesClass.MAINBOARD, symbol)
        if summary is not None:
            return summary
        logger.debug(f"No main-board series for {symbol}; falling back to SME")
        return self.summary(SeriesClass.SME, symbol)


__all__ = ["DEFAULT_MAX_POINTS", "TimeSeriesStore", "now_ms"]
