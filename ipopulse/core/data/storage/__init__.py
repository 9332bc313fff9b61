"""DuckDB storage for listings and bid time series."""

from .duckdb_factory import MEMORY_DATABASE, DuckDBFactoryConfig, IpoPulseDuckDBFactory
from .timeseries import DEFAULT_MAX_POINTS, TimeSeriesStore, now_ms

__all__ = [
    "DEFAULT_MAX_POINTS",
    "DuckDBFactoryConfig",
    "IpoPulseDuckDBFactory",
    "MEMORY_DATABASE",
    "TimeSeriesStore",
    "now_ms",
]
