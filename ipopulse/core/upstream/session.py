"""Scripted session warm-up against the exchange website.

The data endpoints reject requests that do not look like they come from a real
browser navigation. Before every data request the bootstrapper visits the site
root and then a human-facing content page, accumulating the cookies handed out
along the way. Every call builds a brand-new HTTP client so that no cookie jar
is shared between two listings.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

import httpx
from loguru import logger

from ipopulse.core.config import DelayConfig, UpstreamConfig
from ipopulse.core.exceptions import SessionBootstrapError
from ipopulse.core.upstream.delays import Pacer
from ipopulse.core.upstream.endpoints import ExchangeEndpoints
from ipopulse.core.upstream.headers import navigation_headers

ClientFactory = Callable[[], httpx.AsyncClient]


@dataclass(frozen=True)
class SessionContext:
    """Opaque cookie context valid for one subsequent data request."""

    cookie_header: str
    referer: str
    cookies: dict[str, str] = field(default_factory=dict)

    @property
    def has_cookies(self) -> bool:
        return bool(self.cookie_header)


def parse_set_cookie(values: Iterable[str]) -> dict[str, str]:
    """Extract ``name=value`` pairs from raw ``Set-Cookie`` header values."""

    cookies: dict[str, str] = {}
    for raw in values:
        pair = raw.split(";", 1)[0].strip()
        if "=" not in pair:
            continue
        name, value = pair.split("=", 1)
        name = name.strip()
        if name:
            cookies[name] = value.strip()
    return cookies


def render_cookie_header(cookies: dict[str, str]) -> str:
    return "; ".join(f"{name}={value}" for name, value in cookies.items())


def default_client_factory(config: UpstreamConfig) -> ClientFactory:
    """Factory producing a fresh :class:`httpx.AsyncClient` per call."""

    def factory() -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=httpx.Timeout(config.timeout), follow_redirects=True)

    return factory


class SessionBootstrapper:
    """Performs the site-root then content-page visit sequence."""

    def __init__(
        self,
        upstream: UpstreamConfig | None = None,
        delays: DelayConfig | None = None,
        *,
        client_factory: ClientFactory | None = None,
        pacer: Pacer | None = None,
    ) -> None:
        self.upstream = upstream or UpstreamConfig()
        self.delays = delays or DelayConfig()
        self.endpoints = ExchangeEndpoints(self.upstream.base_url)
        self._client_factory = client_factory or default_client_factory(self.upstream)
        self._pacer = pacer or Pacer()

    async def bootstrap(self, content_path: str) -> SessionContext:
        """Visit the site root and ``content_path``; return the merged cookie context.

        Raises:
            SessionBootstrapError: on any transport failure. No retry is attempted.
        """

        site_root = self.endpoints.site_root
        content_url = self.endpoints.url(content_path)
        user_agent = self.upstream.user_agent
        cookies: dict[str, str] = {}

        async with self._client_factory() as client:
            logger.debug(f"Visiting site root {site_root} for a fresh session")
            response = await self._get(client, site_root, navigation_headers(user_agent))
            logger.debug(f"Site root responded with status {response.status_code}")
            cookies.update(parse_set_cookie(response.headers.get_list("set-cookie")))
            logger.debug(f"Collected {len(cookies)} cookies from site root")

            await self._pacer.wait(self.delays.bootstrap, "visiting the content page")

            headers = navigation_headers(
                user_agent, referer=site_root, cookie=render_cookie_header(cookies)
            )
            response = await self._get(client, content_url, headers)
            logger.debug(f"Content page responded with status {response.status_code}")
            fresh = parse_set_cookie(response.headers.get_list("set-cookie"))
            if fresh:
                cookies.update(fresh)
                logger.debug(f"Merged {len(fresh)} cookies from content page")

        return SessionContext(
            cookie_header=render_cookie_header(cookies),
            referer=content_url,
            cookies=cookies,
        )

    async def _get(self, client: httpx.AsyncClient, url: str, headers: dict[str, str]) -> httpx.Response:
        try:
            return await client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            raise SessionBootstrapError(
                f"Session bootstrap request failed: {type(exc).__name__}: {exc}",
                url=url,
            ) from exc


__all__ = [
    "ClientFactory",
    "SessionBootstrapper",
    "SessionContext",
    "default_client_factory",
    "parse_set_cookie",
    "render_cookie_header",
]
