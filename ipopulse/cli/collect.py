"""Collection and scheduling commands."""

from __future__ import annotations

import asyncio
from typing import Any

import typer
from loguru import logger

from ipopulse.core.models import SeriesClass
from ipopulse.core.runtime import IpoPulseRuntime

from .constants import COLLECTION_FAILED_EXIT_CODE, SYSTEM_EXIT_CODE, VALIDATION_EXIT_CODE
from .formatters import flatten_payload
from .utils import build_runtime, emit_error, prepare_output

collect_app = typer.Typer(help="Collect data from the exchange.")

RESULT_COLUMNS = ["job", "success", "count", "errors", "error"]


def register(app: typer.Typer) -> None:
    """Register the collect command group and the ``schedule`` command."""

    app.add_typer(collect_app, name="collect", help="Run collection jobs once")
    app.command("schedule")(schedule_command)


def get_runtime(ctx: typer.Context) -> IpoPulseRuntime:
    """Factory hook for obtaining an :class:`IpoPulseRuntime`."""

    return build_runtime(ctx)


def _parse_series_option(value: str) -> list[SeriesClass]:
    if value.strip().lower() == "all":
        return [SeriesClass.MAINBOARD, SeriesClass.SME]
    try:
        return [SeriesClass.parse(value)]
    except ValueError as exc:
        emit_error(str(exc), "INVALID_SERIES")
        raise typer.Exit(code=VALIDATION_EXIT_CODE) from exc


def _render_results(ctx: typer.Context, rows: list[dict[str, Any]]) -> None:
    formatter, stream, stack, _ = prepare_output(ctx)
    try:
        formatter.render(rows, stream=stream, columns=RESULT_COLUMNS, title="Collection results")
    finally:
        stack.close()
    if not all(row.get("success") for row in rows):
        raise typer.Exit(code=COLLECTION_FAILED_EXIT_CODE)


def _run(runtime: IpoPulseRuntime, coroutine: Any) -> Any:
    try:
        return asyncio.run(coroutine)
    except Exception as error:  # pragma: no cover - safety net
        emit_error(str(error), "UNEXPECTED_ERROR")
        raise typer.Exit(code=SYSTEM_EXIT_CODE) from error
    finally:
        runtime.close()


@collect_app.command("bids")
def collect_bids_command(
    ctx: typer.Context,
    series: str = typer.Option("all", "--series", "-s", help="Series class to collect: EQ, SME or all."),
) -> None:
    """Collect bid details for every active listing of the selected series."""

    series_classes = _parse_series_option(series)
    runtime = get_runtime(ctx)

    async def _collect() -> list[dict[str, Any]]:
        rows = []
        for series_class in series_classes:
            payload = await runtime.scheduler.trigger_bid_collection(series_class)
            rows.append({"job": f"bids:{series_class.value}", **payload})
        return rows

    _render_results(ctx, _run(runtime, _collect()))


@collect_app.command("listings")
def collect_listings_command(ctx: typer.Context) -> None:
    """Refresh the listing catalog from the upcoming issues feed."""

    runtime = get_runtime(ctx)
    payload = _run(runtime, runtime.scheduler.trigger_listing_refresh())
    _render_results(ctx, [{"job": "listings", **payload}])


@collect_app.command("all")
def collect_all_command(ctx: typer.Context) -> None:
    """Refresh listings, wait for the settle delay, then collect bids."""

    runtime = get_runtime(ctx)
    payload = _run(runtime, runtime.scheduler.trigger_sequential_refresh())
    rows = [{"job": "listings", **payload["listings"]}]
    for series_value, bid_payload in payload["bids"].items():
        rows.append({"job": f"bids:{series_value}", **bid_payload})
    _render_results(ctx, rows)


def schedule_command(
    ctx: typer.Context,
    run_immediately: bool = typer.Option(
        False, "--run-immediately", help="Run every job once at startup instead of waiting one interval."
    ),
) -> None:
    """Run the interval scheduler until interrupted."""

    runtime = get_runtime(ctx)
    try:
        asyncio.run(runtime.scheduler.run_forever(run_immediately=run_immediately))
    except KeyboardInterrupt:
        logger.info("Scheduler interrupted")
    finally:
        runtime.close()

    jobs = [
        {"job": job.name, "runs": job.runs, **flatten_payload(job.last_result or {})}
        for job in runtime.scheduler.jobs
    ]
    formatter, stream, stack, _ = prepare_output(ctx)
    try:
        formatter.render(jobs, stream=stream, columns=["job", "runs", *RESULT_COLUMNS[1:]], title="Scheduled jobs")
    finally:
        stack.close()


__all__ = ["collect_app", "get_runtime", "register"]
