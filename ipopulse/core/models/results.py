"""Result payloads returned by collection runs and manual triggers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True, frozen=True)
class ListingCycleResult:
    """Outcome of one bootstrap, fetch, normalize and merge cycle."""

    symbol: str
    succeeded: bool
    records_written: int = 0
    row_errors: int = 0
    error_message: str | None = None
    error_code: str | None = None


@dataclass(slots=True, frozen=True)
class CollectionRunResult:
    """Summary of one orchestrator pass over the active listings."""

    succeeded: bool
    processed_count: int = 0
    error_count: int = 0
    row_error_count: int = 0
    error_message: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Render the manual trigger shape ``{success, count, errors, error?}``."""

        payload: dict[str, Any] = {
            "success": self.succeeded,
            "count": self.processed_count,
            "errors": self.error_count,
        }
        if self.error_message is not None:
            payload["error"] = self.error_message
        return payload


@dataclass(slots=True, frozen=True)
class ListingRefreshResult:
    """Summary of one catalog refresh from the upcoming-issues feed."""

    succeeded: bool
    processed_count: int = 0
    error_count: int = 0
    total: int = 0
    error_message: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.succeeded,
            "count": self.processed_count,
            "errors": self.error_count,
            "total": self.total,
        }
        if self.error_message is not None:
            payload["error"] = self.error_message
        return payload


__all__ = ["CollectionRunResult", "ListingCycleResult", "ListingRefreshResult"]
