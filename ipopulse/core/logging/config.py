"""Logging configuration for the collectors and the CLI."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

PLAIN_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[listing]} | {message}"


class LogConfig(BaseModel):
    """Where log records go and how they are rendered.

    ``serialize`` selects JSON lines on the console; the file sink always
    writes JSON lines.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    level: str = "INFO"
    console_output: bool = True
    console_stream: Any = None
    serialize: bool = True
    plain_format: str = PLAIN_FORMAT
    file_output: bool = False
    file_path: str | None = None
    extra: dict[str, Any] = {}

    @field_validator("level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper()


__all__ = ["LogConfig", "PLAIN_FORMAT"]
