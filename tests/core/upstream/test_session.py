from __future__ import annotations

import httpx
import pytest

from ipopulse.core.config import DelayConfig, DelayRange
from ipopulse.core.exceptions import ErrorCode, SessionBootstrapError
from ipopulse.core.upstream import Pacer, SessionBootstrapper, parse_set_cookie
from ipopulse.core.upstream.session import render_cookie_header

CONTENT_PATH = "/market-data/issue-information?symbol=ABCL&series=EQ&type=Active"


def test_parse_set_cookie_keeps_name_value_pairs_only() -> None:
    cookies = parse_set_cookie(
        [
            "nsit=abc123; Path=/; HttpOnly",
            "nseappid=token==; Secure",
            "malformed-without-equals",
            "=empty-name",
        ]
    )

    assert cookies == {"nsit": "abc123", "nseappid": "token=="}
    assert render_cookie_header(cookies) == "nsit=abc123; nseappid=token=="


@pytest.mark.asyncio
async def test_bootstrap_merges_cookies_and_sets_referers(exchange, upstream_config, zero_delays, pacer) -> None:
    exchange.page_cookies["/market-data/issue-information"] = ["bm_sv=content-bm; Path=/", "ak_bmsc=ak; Path=/"]
    bootstrapper = SessionBootstrapper(
        upstream_config, zero_delays, client_factory=exchange.client_factory, pacer=pacer
    )

    session = await bootstrapper.bootstrap(CONTENT_PATH)

    root_request, content_request = exchange.requests
    assert root_request.url.host == "exchange.test"
    assert root_request.url.path == "/"
    assert "referer" not in root_request.headers
    assert content_request.headers["referer"] == "https://exchange.test"
    assert "nsit=root-cookie" in content_request.headers["cookie"]
    # Newer value wins for a repeated cookie name.
    assert session.cookies == {"nsit": "root-cookie", "bm_sv": "content-bm", "ak_bmsc": "ak"}
    assert session.referer == f"https://exchange.test{CONTENT_PATH}"
    assert session.cookie_header == "nsit=root-cookie; bm_sv=content-bm; ak_bmsc=ak"


@pytest.mark.asyncio
async def test_bootstrap_waits_between_visits(exchange, upstream_config, sleeper) -> None:
    delays = DelayConfig(bootstrap=DelayRange(3.0, 5.0))
    bootstrapper = SessionBootstrapper(
        upstream_config, delays, client_factory=exchange.client_factory, pacer=Pacer(sleep=sleeper)
    )

    await bootstrapper.bootstrap(CONTENT_PATH)

    assert len(sleeper.calls) == 1
    assert 3.0 <= sleeper.calls[0] <= 5.0


@pytest.mark.asyncio
async def test_bootstrap_uses_a_fresh_client_each_time(exchange, upstream_config, zero_delays, pacer) -> None:
    bootstrapper = SessionBootstrapper(
        upstream_config, zero_delays, client_factory=exchange.client_factory, pacer=pacer
    )

    await bootstrapper.bootstrap(CONTENT_PATH)
    await bootstrapper.bootstrap(CONTENT_PATH)

    assert exchange.clients_created == 2
    # The second root visit carries no cookie from the first session.
    assert "cookie" not in exchange.requests[2].headers


@pytest.mark.asyncio
async def test_bootstrap_network_failure_raises(exchange, upstream_config, zero_delays, pacer) -> None:
    exchange.add("/market-data/issue-information", httpx.ConnectError("connection reset"))
    bootstrapper = SessionBootstrapper(
        upstream_config, zero_delays, client_factory=exchange.client_factory, pacer=pacer
    )

    with pytest.raises(SessionBootstrapError) as excinfo:
        await bootstrapper.bootstrap(CONTENT_PATH)

    assert excinfo.value.error_code == ErrorCode.SESSION_BOOTSTRAP_ERROR.value
    assert "connection reset" in excinfo.value.message
    assert len(exchange.requests) == 2
