"""URL layout of the exchange website."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlencode

from ipopulse.core.models import SeriesClass


@dataclass(frozen=True)
class ExchangeEndpoints:
    """Builds the three URLs visited per collection cycle."""

    base_url: str = "https://www.nseindia.com"

    @property
    def site_root(self) -> str:
        return self.base_url.rstrip("/")

    def url(self, path: str) -> str:
        return f"{self.site_root}/{path.lstrip('/')}"

    def issue_page_path(self, symbol: str, series_class: SeriesClass) -> str:
        query = urlencode({"symbol": symbol, "series": series_class.value, "type": "Active"})
        return f"/market-data/issue-information?{query}"

    def bid_data_url(self, symbol: str, series_class: SeriesClass) -> str:
        if series_class is SeriesClass.SME:
            return self.url(f"/api/ipo-detail?{urlencode({'symbol': symbol, 'series': 'SME'})}")
        return self.url(f"/api/ipo-active-category?{urlencode({'symbol': symbol})}")

    @property
    def upcoming_issues_page_path(self) -> str:
        return "/market-data/all-upcoming-issues-ipo"

    @property
    def upcoming_issues_url(self) -> str:
        return self.url("/api/all-upcoming-issues?category=ipo")


__all__ = ["ExchangeEndpoints"]
