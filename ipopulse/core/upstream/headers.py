"""Browser-like header profiles for each stage of an upstream visit."""

from __future__ import annotations

_HTML_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,"
    "image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.7"
)
_XHR_ACCEPT = "application/json, text/javascript, */*; q=0.01"

# httpx decodes gzip and deflate natively
_ACCEPT_ENCODING = "gzip, deflate"


def navigation_headers(user_agent: str, *, referer: str | None = None, cookie: str = "") -> dict[str, str]:
    """Headers of a top-level document navigation.

    The first visit (no referer) reports ``Sec-Fetch-Site: none`` like a typed URL;
    follow-up pages report ``same-origin`` and carry the referer and cookies.
    """

    headers = {
        "User-Agent": user_agent,
        "Accept": _HTML_ACCEPT,
        "Accept-Language": "en-US,en;q=0.9",
        "Accept-Encoding": _ACCEPT_ENCODING,
        "DNT": "1",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
        "Sec-Fetch-Dest": "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": "same-origin" if referer else "none",
        "Cache-Control": "max-age=0",
    }
    if referer:
        headers["Referer"] = referer
    if cookie:
        headers["Cookie"] = cookie
    return headers


def xhr_headers(user_agent: str, *, referer: str, cookie: str = "") -> dict[str, str]:
    """Headers of an in-page XHR call to a JSON endpoint."""

    headers = {
        "Referer": referer,
        "User-Agent": user_agent,
        "Accept": _XHR_ACCEPT,
        "Accept-Language": "en-US,en;q=0.9",
        "Accept-Encoding": _ACCEPT_ENCODING,
        "X-Requested-With": "XMLHttpRequest",
        "DNT": "1",
        "Connection": "keep-alive",
        "Sec-Fetch-Dest": "empty",
        "Sec-Fetch-Mode": "cors",
        "Sec-Fetch-Site": "same-origin",
        "sec-ch-ua": '"Not_A Brand";v="8", "Chromium";v="120", "Google Chrome";v="120"',
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"Windows"',
    }
    if cookie:
        headers["Cookie"] = cookie
    return headers


def minimal_headers(user_agent: str, *, referer: str, cookie: str = "") -> dict[str, str]:
    """Degraded header set used for the single 403 retry."""

    headers = {
        "User-Agent": user_agent,
        "Referer": referer,
        "Accept": "*/*",
    }
    if cookie:
        headers["Cookie"] = cookie
    return headers


__all__ = ["minimal_headers", "navigation_headers", "xhr_headers"]
