"""Helpers for opening configured DuckDB connections for the ingestion store."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import duckdb
from duckdb import DuckDBPyConnection
from loguru import logger

from ipopulse.core.data.schema import ensure_ingestion_tables

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from ipopulse.core.config import StorageConfig

MEMORY_DATABASE = ":memory:"


@dataclass(frozen=True)
class DuckDBFactoryConfig:
    """Configuration applied to DuckDB connections produced by the factory."""

    database: str | Path = MEMORY_DATABASE
    read_only: bool = False
    ensure_schema: bool = True
    pragmas: Mapping[str, object] = field(default_factory=lambda: {"threads": 1})

    @classmethod
    def from_storage(cls, storage: StorageConfig, *, read_only: bool = False) -> DuckDBFactoryConfig:
        return cls(database=storage.database, read_only=read_only, ensure_schema=not read_only)


class IpoPulseDuckDBFactory:
    """Factory that yields DuckDB connections with the ingestion tables in place."""

    def __init__(self, config: DuckDBFactoryConfig | None = None) -> None:
        self._config = config or DuckDBFactoryConfig()

    @property
    def database(self) -> str:
        return str(self._config.database)

    def create_connection(self) -> DuckDBPyConnection:
        """Create and return a configured DuckDB connection."""

        database = self.database
        if database != MEMORY_DATABASE:
            Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)
            database = str(Path(database).expanduser())
        conn = duckdb.connect(database=database, read_only=self._config.read_only)
        self._apply_pragmas(conn)
        if self._config.ensure_schema:
            ensure_ingestion_tables(conn)
        logger.debug(f"Opened DuckDB connection to {database}")
        return conn

    @contextmanager
    def connection(self) -> Iterator[DuckDBPyConnection]:
        """Context manager that yields a configured DuckDB connection."""

        conn = self.create_connection()
        try:
            yield conn
        finally:
            conn.close()

    def _apply_pragmas(self, conn: DuckDBPyConnection) -> None:
        for setting, value in self._config.pragmas.items():
            conn.execute(f"SET {setting}=?", [value])


__all__ = ["DuckDBFactoryConfig", "IpoPulseDuckDBFactory", "MEMORY_DATABASE"]
