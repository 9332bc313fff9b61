"""Bid category records and time-series entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .market import TOTAL_SR_NO, SeriesClass, SeriesMetric


@dataclass(slots=True, frozen=True)
class BidCategoryRecord:
    """Normalised subscription demand for one category at one point in time."""

    symbol: str
    series_class: SeriesClass
    sr_no: str
    category: str
    share_offered: str
    shares_bid: str
    total_meant: str
    update_time: str = ""
    application_count: str | None = None

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.symbol, self.category, self.sr_no)

    @property
    def is_total(self) -> bool:
        return self.sr_no == TOTAL_SR_NO

    def metric_values(self) -> dict[SeriesMetric, str]:
        """Map each tracked series metric to this record's value."""

        values = {
            SeriesMetric.SHARES_BID: self.shares_bid,
            SeriesMetric.TOTAL_MEANT: self.total_meant,
        }
        if self.series_class is SeriesClass.SME:
            values[SeriesMetric.APPLICATION_COUNT] = self.application_count or "0"
        return values


@dataclass(slots=True, frozen=True)
class SeriesPoint:
    """A single ``(value, timestamp)`` observation."""

    value: str
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> SeriesPoint:
        return cls(value=str(payload["value"]), timestamp=int(payload["timestamp"]))


@dataclass(slots=True)
class TimeSeriesEntity:
    """Durable per-(listing, category, row) aggregate of bounded series."""

    id: str
    series_class: SeriesClass
    symbol: str
    category: str
    sr_no: str
    share_offered: str
    update_time: str
    last_updated: int
    series: dict[str, list[SeriesPoint]] = field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.symbol, self.category, self.sr_no)

    @property
    def is_total(self) -> bool:
        return self.sr_no == TOTAL_SR_NO

    def points(self, metric: SeriesMetric | str) -> list[SeriesPoint]:
        name = metric.value if isinstance(metric, SeriesMetric) else metric
        return self.series.get(name, [])

    def latest_value(self, metric: SeriesMetric | str) -> str:
        """Most recent value of ``metric``, ``"0"`` when the series is empty."""

        points = self.points(metric)
        if not points:
            return "0"
        return points[-1].value

    def append(self, metric: SeriesMetric | str, point: SeriesPoint, max_points: int) -> None:
        """Append ``point`` and evict the oldest points beyond ``max_points``."""

        name = metric.value if isinstance(metric, SeriesMetric) else metric
        points = self.series.setdefault(name, [])
        points.append(point)
        if len(points) > max_points:
            del points[: len(points) - max_points]

    def series_payload(self) -> dict[str, list[dict[str, Any]]]:
        return {name: [point.to_dict() for point in points] for name, points in self.series.items()}


@dataclass(slots=True, frozen=True)
class BidSnapshot:
    """Flat latest-value view of a :class:`TimeSeriesEntity`."""

    symbol: str
    series_class: SeriesClass
    sr_no: str
    category: str
    share_offered: str
    shares_bid: str
    total_meant: str
    application_count: str | None
    update_time: str
    last_updated: int

    @classmethod
    def from_entity(cls, entity: TimeSeriesEntity) -> BidSnapshot:
        application_count = None
        if entity.series_class is SeriesClass.SME:
            application_count = entity.latest_value(SeriesMetric.APPLICATION_COUNT)
        return cls(
            symbol=entity.symbol,
            series_class=entity.series_class,
            sr_no=entity.sr_no,
            category=entity.category,
            share_offered=entity.share_offered,
            shares_bid=entity.latest_value(SeriesMetric.SHARES_BID),
            total_meant=entity.latest_value(SeriesMetric.TOTAL_MEANT),
            application_count=application_count,
            update_time=entity.update_time,
            last_updated=entity.last_updated,
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "series": self.series_class.value,
            "sr_no": self.sr_no,
            "category": self.category,
            "share_offered": self.share_offered,
            "shares_bid": self.shares_bid,
            "total_meant": self.total_meant,
            "application_count": self.application_count,
            "update_time": self.update_time,
            "last_updated": self.last_updated,
        }


@dataclass(slots=True, frozen=True)
class BidSummary:
    """Per-symbol aggregate over the latest values of every category."""

    symbol: str
    series_class: SeriesClass
    total_categories: int
    total_shares_offered: float
    total_shares_bid: float
    overall_subscription: float
    last_updated: int
    update_time: str
    total_applications: float | None = None
    time_series: tuple[TimeSeriesEntity, ...] = ()

    def to_row(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "series": self.series_class.value,
            "total_categories": self.total_categories,
            "total_shares_offered": self.total_shares_offered,
            "total_shares_bid": self.total_shares_bid,
            "overall_subscription": round(self.overall_subscription, 3),
            "total_applications": self.total_applications,
            "update_time": self.update_time,
            "last_updated": self.last_updated,
        }


__all__ = [
    "BidCategoryRecord",
    "BidSnapshot",
    "BidSummary",
    "SeriesPoint",
    "TimeSeriesEntity",
]
