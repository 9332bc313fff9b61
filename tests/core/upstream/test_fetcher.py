from __future__ import annotations

import httpx
import pytest

from ipopulse.core.config import DelayConfig, DelayRange
from ipopulse.core.exceptions import ErrorCode, RateLimitError, UpstreamHTTPError
from ipopulse.core.upstream import Pacer, ResilientFetcher, SessionContext

API_PATH = "/api/ipo-active-category"
URL = f"https://exchange.test{API_PATH}?symbol=ABCL"


@pytest.fixture
def session() -> SessionContext:
    return SessionContext(
        cookie_header="nsit=abc; bm_sv=def",
        referer="https://exchange.test/market-data/issue-information?symbol=ABCL&series=EQ&type=Active",
        cookies={"nsit": "abc", "bm_sv": "def"},
    )


@pytest.fixture
def fetcher(exchange, upstream_config, zero_delays, pacer) -> ResilientFetcher:
    return ResilientFetcher(upstream_config, zero_delays, client_factory=exchange.client_factory, pacer=pacer)


@pytest.mark.asyncio
async def test_success_sends_xhr_headers(exchange, fetcher, session) -> None:
    exchange.json(API_PATH, {"dataList": [], "updateTime": "10-Jan-2025 17:00:00"})

    result = await fetcher.fetch(session, URL)

    assert result.success is True
    assert result.payload == {"dataList": [], "updateTime": "10-Jan-2025 17:00:00"}
    assert result.statuses == (200,)
    assert result.retried is False
    request = exchange.requests[0]
    assert request.headers["accept"] == "application/json, text/javascript, */*; q=0.01"
    assert request.headers["x-requested-with"] == "XMLHttpRequest"
    assert request.headers["cookie"] == "nsit=abc; bm_sv=def"
    assert request.headers["referer"] == session.referer


@pytest.mark.asyncio
async def test_non_forbidden_failure_is_not_retried(exchange, fetcher, session) -> None:
    exchange.add(API_PATH, httpx.Response(500, text="x" * 500))

    result = await fetcher.fetch(session, URL)

    assert result.success is False
    assert result.error == "HTTP 500: " + "x" * 200
    assert result.error_code == ErrorCode.UPSTREAM_HTTP_ERROR.value
    assert len(exchange.requests) == 1
    assert isinstance(result.to_exception(), UpstreamHTTPError)


@pytest.mark.asyncio
async def test_forbidden_then_success_returns_retry_payload(exchange, fetcher, session) -> None:
    exchange.add(
        API_PATH,
        httpx.Response(403, text="Access Denied"),
        httpx.Response(200, json={"dataList": [{"srNo": "1", "category": "QIB"}]}),
    )

    result = await fetcher.fetch(session, URL)

    assert result.success is True
    assert result.retried is True
    assert result.statuses == (403, 200)
    assert result.payload["dataList"][0]["category"] == "QIB"
    retry = exchange.requests[1]
    assert retry.headers["accept"] == "*/*"
    assert "x-requested-with" not in retry.headers
    assert retry.headers["cookie"] == "nsit=abc; bm_sv=def"
    assert retry.headers["referer"] == session.referer


@pytest.mark.asyncio
async def test_forbidden_twice_names_both_statuses(exchange, fetcher, session) -> None:
    exchange.add(API_PATH, httpx.Response(403, text="denied"))

    result = await fetcher.fetch(session, URL)

    assert result.success is False
    assert result.error_code == ErrorCode.RATE_LIMITED.value
    assert "403" in result.error and result.statuses == (403, 403)
    assert len(exchange.requests) == 2
    error = result.to_exception()
    assert isinstance(error, RateLimitError)
    assert error.statuses == (403, 403)


@pytest.mark.asyncio
async def test_forbidden_then_server_error_reports_both(exchange, fetcher, session) -> None:
    exchange.add(API_PATH, httpx.Response(403), httpx.Response(503))

    result = await fetcher.fetch(session, URL)

    assert result.success is False
    assert "first status 403" in result.error
    assert "retry status 503" in result.error
    assert len(exchange.requests) == 2


@pytest.mark.asyncio
async def test_invalid_json_is_a_payload_failure(exchange, fetcher, session) -> None:
    exchange.add(API_PATH, httpx.Response(200, text="<html>maintenance</html>"))

    result = await fetcher.fetch(session, URL)

    assert result.success is False
    assert result.error_code == ErrorCode.PAYLOAD_FORMAT_ERROR.value


@pytest.mark.asyncio
async def test_transport_error_is_captured(exchange, fetcher, session) -> None:
    exchange.add(API_PATH, httpx.ReadTimeout("timed out"))

    result = await fetcher.fetch(session, URL)

    assert result.success is False
    assert result.error_code == ErrorCode.UPSTREAM_NETWORK_ERROR.value
    assert "ReadTimeout" in result.error


@pytest.mark.asyncio
async def test_request_and_retry_delays_are_drawn_from_their_ranges(exchange, upstream_config, session, sleeper) -> None:
    delays = DelayConfig(request=DelayRange(4.0, 6.0), retry=DelayRange(7.0, 10.0))
    fetcher = ResilientFetcher(
        upstream_config, delays, client_factory=exchange.client_factory, pacer=Pacer(sleep=sleeper)
    )
    exchange.add(API_PATH, httpx.Response(403), httpx.Response(200, json={}))

    await fetcher.fetch(session, URL)

    request_delay, retry_delay = sleeper.calls
    assert 4.0 <= request_delay <= 6.0
    assert 7.0 <= retry_delay <= 10.0
