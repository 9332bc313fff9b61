"""Exception handling module."""

from ipopulse.core.exceptions.base import (
    CatalogError,
    ConfigError,
    IpoPulseError,
    PayloadFormatError,
    PersistenceError,
    RateLimitError,
    RowNormalizationError,
    SessionBootstrapError,
    UpstreamError,
    UpstreamHTTPError,
)
from ipopulse.core.exceptions.codes import ErrorCode

__all__ = [
    "IpoPulseError",
    "ConfigError",
    "UpstreamError",
    "SessionBootstrapError",
    "UpstreamHTTPError",
    "RateLimitError",
    "PayloadFormatError",
    "RowNormalizationError",
    "PersistenceError",
    "CatalogError",
    "ErrorCode",
]
