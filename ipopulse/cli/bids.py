"""Read-only views over the stored bid time series."""

from __future__ import annotations

import typer

from ipopulse.core.models import SeriesClass
from ipopulse.core.runtime import IpoPulseRuntime

from .constants import NOT_FOUND_EXIT_CODE, VALIDATION_EXIT_CODE
from .utils import build_runtime, emit_error, prepare_output

bids_app = typer.Typer(help="Inspect collected bid details.")

SNAPSHOT_COLUMNS = [
    "sr_no",
    "category",
    "share_offered",
    "shares_bid",
    "total_meant",
    "application_count",
    "update_time",
]
SUMMARY_COLUMNS = [
    "symbol",
    "series",
    "total_categories",
    "total_shares_offered",
    "total_shares_bid",
    "overall_subscription",
    "total_applications",
    "update_time",
    "last_updated",
]


def register(app: typer.Typer) -> None:
    app.add_typer(bids_app, name="bids", help="Inspect collected bid details")


def get_runtime(ctx: typer.Context) -> IpoPulseRuntime:
    """Factory hook for obtaining an :class:`IpoPulseRuntime`."""

    return build_runtime(ctx)


def _series_or_none(series: str | None) -> SeriesClass | None:
    if series is None:
        return None
    try:
        return SeriesClass.parse(series)
    except ValueError as exc:
        emit_error(str(exc), "INVALID_SERIES")
        raise typer.Exit(code=VALIDATION_EXIT_CODE) from exc


@bids_app.command("show")
def show_command(
    ctx: typer.Context,
    symbol: str = typer.Argument(..., help="Listing symbol."),
    series: str | None = typer.Option(None, "--series", "-s", help="Restrict to EQ or SME."),
) -> None:
    """Print the latest value of every category row of SYMBOL."""

    series_class = _series_or_none(series)
    runtime = get_runtime(ctx)
    try:
        snapshots = runtime.store.snapshot(symbol.strip().upper(), series_class)
    finally:
        runtime.close()

    if not snapshots:
        emit_error(f"No bid data stored for {symbol}", "BIDS_NOT_FOUND", details={"symbol": symbol})
        raise typer.Exit(code=NOT_FOUND_EXIT_CODE)

    formatter, stream, stack, _ = prepare_output(ctx)
    try:
        formatter.render(
            [snapshot.to_row() for snapshot in snapshots],
            stream=stream,
            columns=SNAPSHOT_COLUMNS,
            title=f"{symbol} bid details",
        )
    finally:
        stack.close()


@bids_app.command("summary")
def summary_command(
    ctx: typer.Context,
    symbol: str = typer.Argument(..., help="Listing symbol."),
    series: str | None = typer.Option(
        None, "--series", "-s", help="EQ or SME; defaults to main-board when both exist."
    ),
) -> None:
    """Print aggregate subscription figures for SYMBOL."""

    series_class = _series_or_none(series)
    runtime = get_runtime(ctx)
    normalized = symbol.strip().upper()
    try:
        if series_class is None:
            summary = runtime.store.preferred_summary(normalized)
        else:
            summary = runtime.store.summary(series_class, normalized)
    finally:
        runtime.close()

    if summary is None:
        emit_error(f"No bid data stored for {symbol}", "BIDS_NOT_FOUND", details={"symbol": symbol})
        raise typer.Exit(code=NOT_FOUND_EXIT_CODE)

    formatter, stream, stack, _ = prepare_output(ctx)
    try:
        formatter.render([summary.to_row()], stream=stream, columns=SUMMARY_COLUMNS, title=f"{symbol} summary")
    finally:
        stack.close()


__all__ = ["bids_app", "get_runtime", "register"]
