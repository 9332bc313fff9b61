"""loguru setup with per-cycle trace ids and listing context.

Every record carries ``trace_id``, ``symbol``, ``series_class`` and
``error_code`` at the top level of its JSON rendering, so one collection
cycle can be followed across the bootstrap, fetch, normalize and merge
steps. Anything else bound or placed in :func:`log_context` ends up under
``context``.
"""

from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path
from typing import IO, Any, Iterator
from uuid import uuid4

from loguru import logger

from ipopulse.core.logging.config import LogConfig

_trace_id: ContextVar[str | None] = ContextVar("ipopulse_trace_id", default=None)
_context: ContextVar[dict[str, Any]] = ContextVar("ipopulse_log_context", default={})

TOP_LEVEL_KEYS = ("symbol", "series_class", "error_code")
_INTERNAL_KEYS = {"trace_id", "listing", *TOP_LEVEL_KEYS}


def current_trace_id() -> str:
    """Return the active trace id, starting a new trace when none is set."""

    trace_id = _trace_id.get()
    if trace_id is None:
        trace_id = uuid4().hex
        _trace_id.set(trace_id)
    return trace_id


def _listing_label(extra: dict[str, Any]) -> str:
    symbol = extra.get("symbol")
    series_class = extra.get("series_class")
    if symbol and series_class:
        return f"{series_class}:{symbol}"
    return str(symbol or series_class or "-")


def _patch_record(record: dict[str, Any]) -> None:
    extra = record["extra"]
    if extra.get("trace_id"):
        _trace_id.set(extra["trace_id"])
    else:
        extra["trace_id"] = current_trace_id()

    # explicitly bound values win over the surrounding context
    for key, value in _context.get().items():
        if extra.get(key) is None:
            extra[key] = value
    for key in TOP_LEVEL_KEYS:
        extra.setdefault(key, None)
    extra["listing"] = _listing_label(extra)


def _render(record: dict[str, Any]) -> str:
    extra = record["extra"]
    payload: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "trace_id": extra.get("trace_id"),
    }
    payload.update({key: extra.get(key) for key in TOP_LEVEL_KEYS})
    context = {key: value for key, value in extra.items() if key not in _INTERNAL_KEYS}
    if context:
        payload["context"] = context
    if record["exception"] is not None:
        payload["exception"] = str(record["exception"])
    return json.dumps(payload, default=_json_default)


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class JsonLinesSink:
    """Writes one JSON document per record to a stream or appends to a file."""

    def __init__(self, target: IO[str] | str | Path) -> None:
        if isinstance(target, (str, Path)):
            path = Path(target).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            self._path: Path | None = path
            self._stream: IO[str] | None = None
        else:
            self._path = None
            self._stream = target

    def __call__(self, message: Any) -> None:
        line = _render(message.record) + "\n"
        if self._stream is not None:
            self._stream.write(line)
            self._stream.flush()
            return
        with open(self._path, "a", encoding="utf-8") as handle:
            handle.write(line)


def _apply(config: LogConfig) -> None:
    handlers: list[dict[str, Any]] = []
    if config.console_output:
        stream = config.console_stream or sys.stderr
        if config.serialize:
            handlers.append({"sink": JsonLinesSink(stream), "level": config.level})
        else:
            handlers.append({"sink": stream, "level": config.level, "format": config.plain_format})
    if config.file_output and config.file_path:
        handlers.append({"sink": JsonLinesSink(config.file_path), "level": config.level})
    logger.configure(handlers=handlers, patcher=_patch_record, extra=dict(config.extra))


def configure_logging(level: str = "INFO", **kwargs: Any) -> None:
    """Replace every loguru handler according to ``level`` and :class:`LogConfig` options."""

    _apply(LogConfig(level=level, **kwargs))


class StructuredLogger:
    """Holds a :class:`LogConfig` and the loguru logger configured from it."""

    def __init__(self, config: LogConfig | None = None) -> None:
        self.config = config or LogConfig()
        _apply(self.config)
        self.logger = logger

    def configure(self, **kwargs: Any) -> None:
        self.config = self.config.model_copy(update=kwargs)
        _apply(self.config)

    @contextmanager
    def context(self, *, trace_id: str | None = None, **extra: Any) -> Iterator[str]:
        with log_context(trace_id=trace_id, **extra) as active_trace:
            yield active_trace


def get_logger(name: str | None = None):
    if name:
        return logger.bind(logger_name=name)
    return logger


def bind(**kwargs: Any):
    """Shortcut for ``logger.bind``; bound keys override :func:`log_context` values."""

    return logger.bind(**kwargs)


@contextmanager
def log_context(*, trace_id: str | None = None, **extra: Any) -> Iterator[str]:
    """Start a trace and attach listing metadata to every record logged inside.

    Contexts nest: inner values are merged over outer ones, and the trace id
    is new unless one is passed in.
    """

    context_token = _context.set({**_context.get(), **extra})
    active_trace = trace_id or uuid4().hex
    trace_token = _trace_id.set(active_trace)
    try:
        yield active_trace
    finally:
        _trace_id.reset(trace_token)
        _context.reset(context_token)


__all__ = [
    "JsonLinesSink",
    "StructuredLogger",
    "TOP_LEVEL_KEYS",
    "bind",
    "configure_logging",
    "current_trace_id",
    "get_logger",
    "log_context",
    "logger",
]
