"""Listing catalog models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .market import SeriesClass


class Listing(BaseModel):
    """A tracked public offering as stored in the listing catalog."""

    model_config = ConfigDict(use_enum_values=False, frozen=True)

    symbol: str
    company_name: str
    series_class: SeriesClass = SeriesClass.MAINBOARD
    status: str = "Unknown"
    issue_start_date: str = ""
    issue_end_date: str = ""
    issue_size: str = ""
    issue_price: str = ""
    sr_no: int = 0
    is_bse: str | None = None
    lot_size: int | None = None
    last_updated: int = Field(default=0, description="Epoch milliseconds of the last catalog write.")

    @property
    def is_active(self) -> bool:
        """True when the free-text status contains ``active``."""

        return "active" in self.status.lower()


class ListingStats(BaseModel):
    """Counts over the listing catalog."""

    total: int = 0
    active: int = 0
    upcoming: int = 0
    closed: int = 0
    mainboard: int = 0
    sme: int = 0


__all__ = ["Listing", "ListingStats"]
