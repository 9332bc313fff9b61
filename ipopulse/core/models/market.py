"""Market-related enums."""

from enum import Enum


class SeriesClass(str, Enum):
    """Offering categories tracked on the exchange."""

    MAINBOARD = "EQ"
    SME = "SME"

    @classmethod
    def parse(cls, value: "str | SeriesClass") -> "SeriesClass":
        """Resolve ``EQ``/``SME`` (or the long names) to a member."""

        if isinstance(value, SeriesClass):
            return value
        normalized = value.strip().upper()
        aliases = {
            "EQ": cls.MAINBOARD,
            "MAINBOARD": cls.MAINBOARD,
            "MAIN-BOARD": cls.MAINBOARD,
            "SME": cls.SME,
            "SMALL-AND-MEDIUM-ENTERPRISE": cls.SME,
        }
        if normalized not in aliases:
            raise ValueError(f"Unknown series class '{value}'. Expected one of: EQ, SME.")
        return aliases[normalized]


class SeriesMetric(str, Enum):
    """Metrics accumulated as bounded time series."""

    SHARES_BID = "shares_bid"
    TOTAL_MEANT = "total_meant"
    APPLICATION_COUNT = "application_count"


def metrics_for(series_class: SeriesClass) -> tuple[SeriesMetric, ...]:
    """Return the series metrics tracked for ``series_class``."""

    if series_class is SeriesClass.SME:
        return (SeriesMetric.SHARES_BID, SeriesMetric.TOTAL_MEANT, SeriesMetric.APPLICATION_COUNT)
    return (SeriesMetric.SHARES_BID, SeriesMetric.TOTAL_MEANT)


TOTAL_SR_NO = "0"
"""Reserved ``sr_no`` for the aggregate Total category row."""
