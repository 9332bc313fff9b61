"""Output formatters for CLI commands."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, TextIO

from rich.box import SIMPLE
from rich.console import Console
from rich.table import Table


def flatten_payload(payload: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested trigger payloads into ``a.b`` keyed rows."""

    flat: dict[str, Any] = {}
    for key, value in payload.items():
        name = f"{prefix}{key}"
        if isinstance(value, Mapping):
            flat.update(flatten_payload(value, f"{name}."))
        else:
            flat[name] = value
    return flat


class OutputFormatter:
    """Base class for CLI output formatters."""

    name: str

    def render(
        self,
        rows: Sequence[Mapping[str, Any]],
        *,
        stream: TextIO,
        columns: Sequence[str] | None = None,
        title: str | None = None,
    ) -> None:
        raise NotImplementedError


@dataclass(slots=True)
class TableFormatter(OutputFormatter):
    """Render rows as a Rich table."""

    name: str = "table"
    no_color: bool = False

    def render(
        self,
        rows: Sequence[Mapping[str, Any]],
        *,
        stream: TextIO,
        columns: Sequence[str] | None = None,
        title: str | None = None,
    ) -> None:
        console = Console(file=stream, color_system=None if self.no_color else "auto", no_color=self.no_color)
        resolved = list(columns) if columns else (list(rows[0].keys()) if rows else [])

        table = Table(box=SIMPLE, title=title, show_lines=False)
        for column in resolved:
            table.add_column(column, header_style="" if self.no_color else "bold")
        for row in rows:
            table.add_row(*(self._format_cell(row.get(column)) for column in resolved))
        if resolved:
            console.print(table)
        if not rows:
            console.print("No data available.")

    def _format_cell(self, value: Any) -> str:
        if value is None:
            return "-"
        if isinstance(value, bool):
            return "yes" if value else "no"
        if isinstance(value, float):
            return f"{value:,.3f}".rstrip("0").rstrip(".")
        return str(value)


@dataclass(slots=True)
class JSONLFormatter(OutputFormatter):
    """Render rows as JSON Lines."""

    name: str = "jsonl"

    def render(
        self,
        rows: Sequence[Mapping[str, Any]],
        *,
        stream: TextIO,
        columns: Sequence[str] | None = None,
        title: str | None = None,
    ) -> None:
        for row in rows:
            selected = {column: row.get(column) for column in columns} if columns else dict(row)
            json.dump(selected, stream, ensure_ascii=False, default=str)
            stream.write("\n")
        stream.flush()


def create_formatter(name: str, *, no_color: bool = False) -> OutputFormatter:
    """Instantiate a formatter by name."""

    normalized = name.strip().lower()
    if normalized == "table":
        return TableFormatter(no_color=no_color)
    if normalized == "jsonl":
        return JSONLFormatter()
    msg = f"Unsupported format '{name}'. Available formats: table, jsonl."
    raise ValueError(msg)


__all__ = ["JSONLFormatter", "OutputFormatter", "TableFormatter", "create_formatter", "flatten_payload"]
