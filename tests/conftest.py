"""Pytest configuration for the ipopulse test suite."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import duckdb
import httpx
import pytest

from ipopulse.core.config import DelayConfig, UpstreamConfig
from ipopulse.core.upstream import Pacer

BASE_URL = "https://exchange.test"

Responder = httpx.Response | Callable[[httpx.Request], httpx.Response] | Exception


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line options for controlling integration tests."""

    parser.addoption(
        "--ipopulse-run-integration",
        action="store_true",
        default=False,
        help="Run ipopulse integration tests that talk to the live exchange website.",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "integration: marks ipopulse tests requiring network access",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless explicitly requested."""

    if config.getoption("--ipopulse-run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="integration tests require --ipopulse-run-integration")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


class RecordingSleeper:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class MockExchange:
    """In-memory stand-in for the exchange website served through ``httpx.MockTransport``.

    Responses are queued per URL path; the last queued response for a path is
    repeated once the queue is drained. HTML pages that were not configured
    answer 200 and hand out the cookies in ``page_cookies``.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.clients_created = 0
        self._routes: dict[str, list[Responder]] = {}
        self.page_cookies: dict[str, list[str]] = {
            "/": ["nsit=root-cookie; Path=/; HttpOnly", "bm_sv=root-bm; Path=/"],
        }

    def add(self, path: str, *responses: Responder) -> None:
        self._routes.setdefault(path, []).extend(responses)

    def json(self, path: str, payload: Any, status_code: int = 200) -> None:
        self.add(path, httpx.Response(status_code, json=payload))

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        queue = self._routes.get(path)
        if queue:
            responder = queue.pop(0) if len(queue) > 1 else queue[0]
            if isinstance(responder, Exception):
                raise responder
            if callable(responder):
                return responder(request)
            return responder
        if path.startswith("/api/"):
            return httpx.Response(404, text="not configured")
        cookies = self.page_cookies.get(path, [])
        return httpx.Response(
            200,
            headers=[("set-cookie", value) for value in cookies],
            text="<html></html>",
        )

    def client_factory(self) -> httpx.AsyncClient:
        self.clients_created += 1
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def exchange() -> MockExchange:
    return MockExchange()


@pytest.fixture
def upstream_config() -> UpstreamConfig:
    return UpstreamConfig(base_url=BASE_URL, timeout=5.0)


@pytest.fixture
def zero_delays() -> DelayConfig:
    return DelayConfig.zero()


@pytest.fixture
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture
def pacer(sleeper: RecordingSleeper) -> Pacer:
    return Pacer(sleep=sleeper)


@pytest.fixture
def memory_conn() -> Iterator[duckdb.DuckDBPyConnection]:
    conn = duckdb.connect(":memory:")
    try:
        yield conn
    finally:
        conn.close()
