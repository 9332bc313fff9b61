"""Utility helpers shared across CLI commands."""

from __future__ import annotations

import json
import sys
from collections.abc import Mapping, Sequence
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

import typer

from ipopulse.core.config import ConfigManager
from ipopulse.core.exceptions import ConfigError, IpoPulseError
from ipopulse.core.logging import configure_logging
from ipopulse.core.runtime import IpoPulseRuntime

from .constants import SYSTEM_EXIT_CODE, VALIDATION_EXIT_CODE
from .formatters import OutputFormatter, create_formatter


@dataclass(slots=True)
class CLIOptions:
    """Resolved options derived from the Typer context."""

    format: str = "table"
    output_path: Path | None = None
    no_color: bool = False
    log_level: str = "INFO"
    config_path: Path | None = None


def get_cli_options(ctx: typer.Context) -> CLIOptions:
    """Options stored by the root callback, or defaults when a command runs standalone."""

    ctx.ensure_object(dict)
    options = ctx.obj.get("options")
    return options if isinstance(options, CLIOptions) else CLIOptions()


def build_runtime(ctx: typer.Context) -> IpoPulseRuntime:
    """Open a runtime from the ``--config`` file and environment overrides."""

    options = get_cli_options(ctx)
    try:
        config = ConfigManager(options.config_path).get_config()
        if config.logging.file:
            configure_logging(
                options.log_level,
                serialize=options.format == "jsonl",
                file_output=True,
                file_path=config.logging.file,
            )
        return IpoPulseRuntime(config)
    except ConfigError as error:
        emit_error(error.message, error.error_code, details=error.details)
        raise typer.Exit(code=VALIDATION_EXIT_CODE) from error
    except IpoPulseError as error:
        emit_error(error.message, error.error_code, details=error.details)
        raise typer.Exit(code=SYSTEM_EXIT_CODE) from error


def prepare_output(ctx: typer.Context) -> tuple[OutputFormatter, TextIO, ExitStack, CLIOptions]:
    """Resolve formatter and writable stream for the current command."""

    options = get_cli_options(ctx)
    formatter = create_formatter(options.format, no_color=options.no_color)

    stack = ExitStack()
    stream: TextIO
    if options.output_path is not None:
        try:
            stream = stack.enter_context(open(options.output_path, "w", encoding="utf-8"))
        except OSError as exc:
            stack.close()
            emit_error(f"Unable to open '{options.output_path}': {exc}", "OUTPUT_WRITE_ERROR")
            raise typer.Exit(code=VALIDATION_EXIT_CODE) from exc
    else:
        stream = sys.stdout

    return formatter, stream, stack, options


def emit_error(message: str, code: str, *, details: Mapping[str, object] | None = None) -> None:
    """Print a structured error payload to stderr."""

    payload: dict[str, object] = {"code": code, "message": message}
    if details:
        payload["details"] = _sanitize_details(details)
    typer.echo(json.dumps(payload, ensure_ascii=False, default=str), err=True)


def _sanitize_details(details: Mapping[str, object]) -> Mapping[str, object]:
    sanitized: dict[str, object] = {}
    for key, value in details.items():
        if isinstance(value, (str, int, float, bool)) or value is None:
            sanitized[key] = value
        elif isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
            sanitized[key] = [str(item) for item in value]
        else:
            sanitized[key] = str(value)
    return sanitized


__all__ = ["CLIOptions", "build_runtime", "emit_error", "get_cli_options", "prepare_output"]
