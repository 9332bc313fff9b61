"""Upstream access: session warm-up, resilient fetch and request pacing."""

from ipopulse.core.upstream.delays import Pacer
from ipopulse.core.upstream.endpoints import ExchangeEndpoints
from ipopulse.core.upstream.fetcher import FetchResult, ResilientFetcher
from ipopulse.core.upstream.session import (
    SessionBootstrapper,
    SessionContext,
    default_client_factory,
    parse_set_cookie,
)

__all__ = [
    "ExchangeEndpoints",
    "FetchResult",
    "Pacer",
    "ResilientFetcher",
    "SessionBootstrapper",
    "SessionContext",
    "default_client_factory",
    "parse_set_cookie",
]
