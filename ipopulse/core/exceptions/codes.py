"""Standardised error codes shared across the ingestion pipeline."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes carried by :class:`IpoPulseError` instances."""

    GENERAL_ERROR = "GENERAL_ERROR"
    CONFIG_ERROR = "CONFIG_ERROR"
    SESSION_BOOTSTRAP_ERROR = "SESSION_BOOTSTRAP_ERROR"
    UPSTREAM_HTTP_ERROR = "UPSTREAM_HTTP_ERROR"
    UPSTREAM_NETWORK_ERROR = "UPSTREAM_NETWORK_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    PAYLOAD_FORMAT_ERROR = "PAYLOAD_FORMAT_ERROR"
    ROW_NORMALIZATION_ERROR = "ROW_NORMALIZATION_ERROR"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
    CATALOG_ERROR = "CATALOG_ERROR"


__all__ = ["ErrorCode"]
