"""Listing catalog commands."""

from __future__ import annotations

import typer

from ipopulse.core.exceptions import CatalogError
from ipopulse.core.models import SeriesClass
from ipopulse.core.runtime import IpoPulseRuntime

from .constants import SYSTEM_EXIT_CODE, VALIDATION_EXIT_CODE
from .utils import build_runtime, emit_error, prepare_output

listings_app = typer.Typer(help="Inspect the listing catalog.")

LISTING_COLUMNS = [
    "symbol",
    "company_name",
    "series_class",
    "status",
    "issue_start_date",
    "issue_end_date",
    "issue_price",
    "lot_size",
]


def register(app: typer.Typer) -> None:
    app.add_typer(listings_app, name="listings", help="Inspect the listing catalog")


def get_runtime(ctx: typer.Context) -> IpoPulseRuntime:
    """Factory hook for obtaining an :class:`IpoPulseRuntime`."""

    return build_runtime(ctx)


@listings_app.command("list")
def list_command(
    ctx: typer.Context,
    status: str | None = typer.Option(None, "--status", help="Exact status to filter on."),
    series: str | None = typer.Option(None, "--series", "-s", help="EQ or SME."),
    active: bool = typer.Option(False, "--active", help="Only listings eligible for bid collection."),
) -> None:
    """List catalog entries."""

    series_class: SeriesClass | None = None
    if series is not None:
        try:
            series_class = SeriesClass.parse(series)
        except ValueError as exc:
            emit_error(str(exc), "INVALID_SERIES")
            raise typer.Exit(code=VALIDATION_EXIT_CODE) from exc

    runtime = get_runtime(ctx)
    try:
        if active:
            classes = [series_class] if series_class else [SeriesClass.MAINBOARD, SeriesClass.SME]
            listings = [item for cls in classes for item in runtime.catalog.list_active_listings(cls)]
        else:
            listings = runtime.catalog.list_listings(status=status, series_class=series_class)
    except CatalogError as error:
        emit_error(error.message, error.error_code, details=error.details)
        raise typer.Exit(code=SYSTEM_EXIT_CODE) from error
    finally:
        runtime.close()

    rows = [listing.model_dump(mode="json") for listing in listings]
    formatter, stream, stack, _ = prepare_output(ctx)
    try:
        formatter.render(rows, stream=stream, columns=LISTING_COLUMNS, title="Listings")
    finally:
        stack.close()


@listings_app.command("stats")
def stats_command(ctx: typer.Context) -> None:
    """Print catalog counts by status and series."""

    runtime = get_runtime(ctx)
    try:
        stats = runtime.catalog.stats()
    except CatalogError as error:
        emit_error(error.message, error.error_code, details=error.details)
        raise typer.Exit(code=SYSTEM_EXIT_CODE) from error
    finally:
        runtime.close()

    formatter, stream, stack, _ = prepare_output(ctx)
    try:
        formatter.render([stats.model_dump()], stream=stream, title="Listing stats")
    finally:
        stack.close()


__all__ = ["get_runtime", "listings_app", "register"]
