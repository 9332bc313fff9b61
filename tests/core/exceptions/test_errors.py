"""Tests for the IpoPulseError hierarchy."""

from __future__ import annotations

import pytest

from ipopulse.core.exceptions import (
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


@pytest.mark.parametrize(
    ("error", "code"),
    [
        (ConfigError("bad"), ErrorCode.CONFIG_ERROR),
        (SessionBootstrapError("down", url="https://exchange.test"), ErrorCode.SESSION_BOOTSTRAP_ERROR),
        (UpstreamHTTPError("HTTP 500: boom", status_code=500), ErrorCode.UPSTREAM_HTTP_ERROR),
        (RateLimitError("blocked", statuses=(403, 403)), ErrorCode.RATE_LIMITED),
        (PayloadFormatError("not json", section="ipo-active-category"), ErrorCode.PAYLOAD_FORMAT_ERROR),
        (RowNormalizationError("missing category", index=2), ErrorCode.ROW_NORMALIZATION_ERROR),
        (PersistenceError("write failed", table="bid_category_series"), ErrorCode.PERSISTENCE_ERROR),
        (CatalogError("read failed"), ErrorCode.CATALOG_ERROR),
    ],
)
def test_error_exposes_code(error: IpoPulseError, code: ErrorCode) -> None:
    """Each subclass carries its machine readable code."""

    assert isinstance(error, IpoPulseError)
    assert error.error_code == code.value
    assert error.to_payload()["code"] == code.value


def test_upstream_errors_record_url_and_status() -> None:
    error = UpstreamHTTPError("HTTP 502: bad gateway", url="https://exchange.test/api/x", status_code=502)

    assert isinstance(error, UpstreamError)
    assert error.details == {"url": "https://exchange.test/api/x", "status_code": 502}
    assert error.status_code == 502


def test_rate_limit_error_keeps_both_statuses() -> None:
    error = RateLimitError(
        "Both attempts failed: first status 403, retry status 403",
        url="https://exchange.test/api/ipo-active-category",
        statuses=(403, 403),
    )

    assert isinstance(error, UpstreamHTTPError)
    assert error.statuses == (403, 403)
    assert error.status_code == 403
    assert error.details["statuses"] == [403, 403]


def test_payload_is_a_copy() -> None:
    error = PayloadFormatError("unexpected shape", section="dataList")

    payload = error.to_payload()
    payload["details"]["section"] = "other"

    assert error.details["section"] == "dataList"
    assert payload["message"] == "unexpected shape"
    assert str(error) == "unexpected shape"
