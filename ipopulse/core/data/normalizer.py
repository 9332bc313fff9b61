"""Normalisation of raw bid-category payloads into :class:`BidCategoryRecord` rows."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any

from loguru import logger

from ipopulse.core.exceptions import PayloadFormatError, RowNormalizationError
from ipopulse.core.models import TOTAL_SR_NO, BidCategoryRecord, SeriesClass

HEADER_PLACEHOLDERS = frozenset({"sr.no.", "sr.no", "sr. no.", "[sr.no](http://sr.no/)."})

_FRACTION_QUANTUM = Decimal("0.001")


@dataclass(slots=True, frozen=True)
class NormalizationIssue:
    """A row that could not be normalised; the rest of the batch continues."""

    index: int
    code: str
    message: str
    row: Mapping[str, Any] | None = None


@dataclass(slots=True)
class NormalizationResult:
    """Records produced from one payload plus the row-level issues encountered."""

    symbol: str
    series_class: SeriesClass
    update_time: str
    records: list[BidCategoryRecord] = field(default_factory=list)
    issues: list[NormalizationIssue] = field(default_factory=list)
    skipped_rows: int = 0


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def format_numeric_value(value: Any) -> str:
    """Render an upstream numeric string canonically.

    Absent values become ``"0"``, scientific notation is expanded to a
    fixed-point integer, whole numbers lose their decimals and fractions are
    rounded to three places. Anything non-numeric is returned trimmed.
    """

    text = _as_text(value)
    if not text:
        return "0"
    try:
        number = Decimal(text)
    except InvalidOperation:
        return text
    if not number.is_finite():
        return text
    if "e" in text.lower():
        return str(int(number.to_integral_value(rounding=ROUND_HALF_UP)))
    if number == number.to_integral_value():
        return str(int(number))
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, number.adjusted() + 8)
        return f"{number.quantize(_FRACTION_QUANTUM, rounding=ROUND_HALF_UP):f}"


def _is_total_category(category: Any) -> bool:
    return _as_text(category).lower() == "total"


def is_data_row(row: Mapping[str, Any]) -> bool:
    """True for category rows; False for header and footer artifacts."""

    sr_no = _as_text(row.get("srNo"))
    if sr_no:
        return sr_no.lower() not in HEADER_PLACEHOLDERS
    return _is_total_category(row.get("category"))


def resolve_sr_no(row: Mapping[str, Any]) -> str:
    sr_no = _as_text(row.get("srNo"))
    if not sr_no and _is_total_category(row.get("category")):
        return TOTAL_SR_NO
    return sr_no


def normalize_row(
    row: Mapping[str, Any],
    *,
    symbol: str,
    series_class: SeriesClass,
    update_time: str = "",
    application_count: Any = None,
    index: int | None = None,
) -> BidCategoryRecord:
    """Convert a single data-bearing row.

    Raises:
        RowNormalizationError: if the row is not a mapping or lacks a category.
    """

    if not isinstance(row, Mapping):
        raise RowNormalizationError(f"Expected an object row, got {type(row).__name__}", index=index)
    category = _as_text(row.get("category"))
    if not category:
        raise RowNormalizationError("Row has no category", index=index)

    return BidCategoryRecord(
        symbol=symbol,
        series_class=series_class,
        sr_no=resolve_sr_no(row),
        category=category,
        share_offered=format_numeric_value(row.get("noOfShareOffered")),
        shares_bid=format_numeric_value(row.get("noOfSharesBid")),
        total_meant=format_numeric_value(row.get("noOfTotalMeant")),
        update_time=update_time,
        application_count=(
            format_numeric_value(application_count) if series_class is SeriesClass.SME else None
        ),
    )


def _normalize_rows(
    rows: Sequence[Any],
    *,
    symbol: str,
    series_class: SeriesClass,
    update_time: str,
    applications: Mapping[str, Any] | None = None,
) -> NormalizationResult:
    result = NormalizationResult(symbol=symbol, series_class=series_class, update_time=update_time)
    for index, row in enumerate(rows):
        try:
            if isinstance(row, Mapping) and not is_data_row(row):
                result.skipped_rows += 1
                continue
            application_count = None
            if applications is not None and isinstance(row, Mapping):
                application_count = applications.get(_as_text(row.get("category")), "0")
            record = normalize_row(
                row,
                symbol=symbol,
                series_class=series_class,
                update_time=update_time,
                application_count=application_count,
                index=index,
            )
        except RowNormalizationError as exc:
            logger.warning(f"Skipping malformed row {index} for {symbol}: {exc.message}")
            result.issues.append(
                NormalizationIssue(
                    index=index,
                    code=exc.error_code,
                    message=exc.message,
                    row=row if isinstance(row, Mapping) else None,
                )
            )
            continue
        result.records.append(record)
    return result


def normalize_mainboard_payload(symbol: str, payload: Any) -> NormalizationResult:
    """Normalise an ``ipo-active-category`` payload: ``{dataList: [...], updateTime}``.

    Raises:
        PayloadFormatError: when the payload or its ``dataList`` section is malformed.
    """

    if not isinstance(payload, Mapping):
        raise PayloadFormatError(f"Expected an object payload, got {type(payload).__name__}")
    rows = payload.get("dataList")
    if not isinstance(rows, list):
        raise PayloadFormatError(
            f"Expected array in dataList but got {type(rows).__name__}", section="dataList"
        )
    return _normalize_rows(
        rows,
        symbol=symbol,
        series_class=SeriesClass.MAINBOARD,
        update_time=_as_text(payload.get("updateTime")),
    )


def _application_counts(bid_details: Sequence[Any]) -> dict[str, Any]:
    counts: dict[str, Any] = {}
    for entry in bid_details:
        if isinstance(entry, Mapping):
            category = _as_text(entry.get("category"))
            if category:
                counts[category] = entry.get("noofapplication")
    return counts


def normalize_sme_payload(symbol: str, payload: Any) -> NormalizationResult:
    """Normalise an SME ``ipo-detail`` payload.

    Category rows live in ``activeCat.dataList``; application counts come from the
    ``bidDetails`` section and are joined on ``category``, defaulting to ``"0"``.
    """

    if not isinstance(payload, Mapping):
        raise PayloadFormatError(f"Expected an object payload, got {type(payload).__name__}")
    active_cat = payload.get("activeCat") or {}
    bid_details = payload.get("bidDetails")
    if bid_details is None:
        bid_details = []
    rows = active_cat.get("dataList") if isinstance(active_cat, Mapping) else None
    if not isinstance(rows, list):
        raise PayloadFormatError(
            f"Expected array in activeCat.dataList but got {type(rows).__name__}",
            section="activeCat.dataList",
        )
    if not isinstance(bid_details, list):
        raise PayloadFormatError(
            f"Expected array in bidDetails but got {type(bid_details).__name__}", section="bidDetails"
        )
    return _normalize_rows(
        rows,
        symbol=symbol,
        series_class=SeriesClass.SME,
        update_time=_as_text(active_cat.get("updateTime")),
        applications=_application_counts(bid_details),
    )


def normalize_payload(symbol: str, series_class: SeriesClass, payload: Any) -> NormalizationResult:
    """Dispatch to the payload shape used by ``series_class``."""

    if series_class is SeriesClass.SME:
        return normalize_sme_payload(symbol, payload)
    return normalize_mainboard_payload(symbol, payload)


def to_float(value: str) -> float:
    """Numeric value of a normalised string, ``0.0`` when not numeric."""

    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


__all__ = [
    "HEADER_PLACEHOLDERS",
    "NormalizationIssue",
    "NormalizationResult",
    "format_numeric_value",
    "is_data_row",
    "normalize_mainboard_payload",
    "normalize_payload",
    "normalize_row",
    "normalize_sme_payload",
    "resolve_sr_no",
    "to_float",
]
