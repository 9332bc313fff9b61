"""Data-endpoint fetch with a single degraded-header retry on 403."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import httpx
from loguru import logger

from ipopulse.core.config import DelayConfig, UpstreamConfig
from ipopulse.core.exceptions import (
    ErrorCode,
    IpoPulseError,
    PayloadFormatError,
    RateLimitError,
    UpstreamError,
    UpstreamHTTPError,
)
from ipopulse.core.upstream.delays import Pacer
from ipopulse.core.upstream.headers import minimal_headers, xhr_headers
from ipopulse.core.upstream.session import ClientFactory, SessionContext, default_client_factory

_FORBIDDEN = 403


@dataclass(frozen=True)
class FetchResult:
    """Classified outcome of a data request. Never raised, always returned."""

    success: bool
    url: str
    payload: Any = None
    statuses: tuple[int, ...] = ()
    error: str | None = None
    error_code: str | None = None
    retried: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def status_code(self) -> int | None:
        return self.statuses[-1] if self.statuses else None

    def to_exception(self) -> IpoPulseError:
        """Typed exception equivalent of a failed result."""

        message = self.error or "fetch failed"
        if self.error_code == ErrorCode.RATE_LIMITED.value:
            return RateLimitError(message, url=self.url, statuses=self.statuses)
        if self.error_code == ErrorCode.UPSTREAM_HTTP_ERROR.value:
            return UpstreamHTTPError(message, url=self.url, status_code=self.status_code, details=dict(self.details))
        if self.error_code == ErrorCode.PAYLOAD_FORMAT_ERROR.value:
            return PayloadFormatError(message, details={"url": self.url, **self.details})
        return UpstreamError(message, url=self.url, error_code=self.error_code or ErrorCode.UPSTREAM_NETWORK_ERROR.value)


class ResilientFetcher:
    """Issues the data request using a bootstrapped session context."""

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
        self._client_factory = client_factory or default_client_factory(self.upstream)
        self._pacer = pacer or Pacer()

    def _excerpt(self, text: str) -> str:
        return text[: self.upstream.error_excerpt_chars]

    async def fetch(self, session: SessionContext, url: str) -> FetchResult:
        """GET ``url`` as an in-page XHR and classify the response."""

        await self._pacer.wait(self.delays.request, "calling the data endpoint")
        user_agent = self.upstream.user_agent

        async with self._client_factory() as client:
            try:
                response = await client.get(
                    url,
                    headers=xhr_headers(user_agent, referer=session.referer, cookie=session.cookie_header),
                )
            except httpx.HTTPError as exc:
                return self._transport_failure(url, exc, ())

            logger.debug(f"Data endpoint responded with status {response.status_code}")
            if response.is_success:
                return self._parse(url, response, (response.status_code,), retried=False)

            first_status = response.status_code
            body = self._excerpt(response.text)
            if first_status != _FORBIDDEN:
                logger.warning(f"Data endpoint failed with HTTP {first_status}")
                return FetchResult(
                    success=False,
                    url=url,
                    statuses=(first_status,),
                    error=f"HTTP {first_status}: {body}",
                    error_code=ErrorCode.UPSTREAM_HTTP_ERROR.value,
                    details={"body": body},
                )

            logger.warning("Data endpoint answered 403, retrying once with minimal headers")
            await self._pacer.wait(self.delays.retry, "the 403 retry")
            try:
                retry_response = await client.get(
                    url,
                    headers=minimal_headers(user_agent, referer=session.referer, cookie=session.cookie_header),
                )
            except httpx.HTTPError as exc:
                return self._transport_failure(url, exc, (first_status,))

            statuses = (first_status, retry_response.status_code)
            logger.debug(f"Retry responded with status {retry_response.status_code}")
            if not retry_response.is_success:
                return FetchResult(
                    success=False,
                    url=url,
                    statuses=statuses,
                    error=(
                        f"Both attempts failed: first status {first_status}, "
                        f"retry status {retry_response.status_code}"
                    ),
                    error_code=ErrorCode.RATE_LIMITED.value,
                    retried=True,
                    details={"body": self._excerpt(retry_response.text)},
                )
            logger.info("Retry succeeded after 403")
            return self._parse(url, retry_response, statuses, retried=True)

    def _parse(self, url: str, response: httpx.Response, statuses: tuple[int, ...], *, retried: bool) -> FetchResult:
        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            return FetchResult(
                success=False,
                url=url,
                statuses=statuses,
                error=f"Response body is not valid JSON: {exc}",
                error_code=ErrorCode.PAYLOAD_FORMAT_ERROR.value,
                retried=retried,
                details={"body": self._excerpt(response.text)},
            )
        return FetchResult(success=True, url=url, payload=payload, statuses=statuses, retried=retried)

    def _transport_failure(self, url: str, exc: httpx.HTTPError, statuses: tuple[int, ...]) -> FetchResult:
        logger.warning(f"Data request transport failure: {type(exc).__name__}: {exc}")
        return FetchResult(
            success=False,
            url=url,
            statuses=statuses,
            error=f"{type(exc).__name__}: {exc}",
            error_code=ErrorCode.UPSTREAM_NETWORK_ERROR.value,
            retried=bool(statuses),
        )


__all__ = ["FetchResult", "ResilientFetcher"]
