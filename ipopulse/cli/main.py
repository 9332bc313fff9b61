"""Main entry point for the ipopulse command line interface."""

from __future__ import annotations

from pathlib import Path

import typer

from ipopulse import __version__
from ipopulse.core.logging import configure_logging

from .bids import register as register_bids_commands
from .collect import register as register_collect_commands
from .formatters import create_formatter
from .listings import register as register_listings_commands
from .utils import CLIOptions


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"ipopulse {__version__}")
        raise typer.Exit()


def create_app() -> typer.Typer:
    """Create a Typer application instance for ipopulse."""

    app = typer.Typer(add_completion=False, help="IPO subscription data collector")

    @app.callback()
    def main(
        ctx: typer.Context,
        format: str = typer.Option(
            "table",
            "--format",
            "-f",
            help="Output format (table or jsonl).",
            show_default=True,
        ),
        output: Path | None = typer.Option(
            None,
            "--output",
            "-o",
            help="Write output to a file instead of stdout.",
        ),
        log_level: str = typer.Option(
            "INFO",
            "--log-level",
            help="Minimum log level written to stderr.",
            show_default=True,
        ),
        no_color: bool = typer.Option(
            False,
            "--no-color",
            help="Disable colorized output for table format.",
        ),
        config: Path | None = typer.Option(
            None,
            "--config",
            "-c",
            help="TOML configuration file (defaults to ~/.ipopulse/config.toml).",
        ),
        version: bool = typer.Option(
            False,
            "--version",
            callback=_print_version,
            is_eager=True,
            help="Show the version and exit.",
        ),
    ) -> None:
        options = CLIOptions(
            format=format.strip().lower(),
            output_path=output,
            no_color=no_color,
            log_level=log_level.strip().upper(),
            config_path=config,
        )
        try:
            create_formatter(options.format, no_color=options.no_color)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--format") from exc
        try:
            configure_logging(options.log_level, serialize=options.format == "jsonl")
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--log-level") from exc

        ctx.ensure_object(dict)
        ctx.obj["options"] = options

    register_collect_commands(app)
    register_bids_commands(app)
    register_listings_commands(app)
    return app


app = create_app()
