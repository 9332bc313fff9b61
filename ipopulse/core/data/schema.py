"""DuckDB table schemas owned by the ingestion core."""

from __future__ import annotations

from collections.abc import Iterable, Sequence  # noqa: TC003
from dataclasses import dataclass

from duckdb import DuckDBPyConnection


@dataclass(frozen=True)
class ColumnDef:
    """Represents a DuckDB table column definition."""

    name: str
    data_type: str
    constraints: Sequence[str] = ()

    def render(self) -> str:
        parts = [self.name, self.data_type, *self.constraints]
        return " ".join(parts)


@dataclass(frozen=True)
class IndexDef:
    """Secondary index over one or more columns."""

    name: str
    columns: Sequence[str]

    def create_ddl(self, table: str) -> str:
        return f"CREATE INDEX IF NOT EXISTS {self.name} ON {table} ({', '.join(self.columns)})"


@dataclass(frozen=True)
class TableSchema:
    """Utility wrapper describing a DuckDB table schema."""

    name: str
    columns: Sequence[ColumnDef]
    primary_key: Sequence[str] = ()
    indexes: Sequence[IndexDef] = ()

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(column.name for column in self.columns)

    def create_ddl(self) -> str:
        column_defs: list[str] = [column.render() for column in self.columns]
        if self.primary_key:
            pk_cols = ", ".join(self.primary_key)
            column_defs.append(f"PRIMARY KEY ({pk_cols})")
        columns_sql = ",\n                ".join(column_defs)
        return f"""
            CREATE TABLE IF NOT EXISTS {self.name} (
                {columns_sql}
            )
            """.strip()

    def index_ddl(self) -> Iterable[str]:
        for index in self.indexes:
            yield index.create_ddl(self.name)

    def ensure(self, conn: DuckDBPyConnection) -> None:
        """Create the table and its indexes on the provided connection if missing."""

        conn.execute(self.create_ddl())
        for statement in self.index_ddl():
            conn.execute(statement)


# Listing rows are updated in place; only the never-updated key columns are indexed.
LISTINGS_TABLE = TableSchema(
    name="listings",
    columns=(
        ColumnDef("id", "VARCHAR", ("NOT NULL", "UNIQUE")),
        ColumnDef("symbol", "VARCHAR", ("NOT NULL",)),
        ColumnDef("company_name", "VARCHAR", ("NOT NULL",)),
        ColumnDef("series_class", "VARCHAR", ("NOT NULL",)),
        ColumnDef("status", "VARCHAR", ("NOT NULL",)),
        ColumnDef("issue_start_date", "VARCHAR"),
        ColumnDef("issue_end_date", "VARCHAR"),
        ColumnDef("issue_size", "VARCHAR"),
        ColumnDef("issue_price", "VARCHAR"),
        ColumnDef("sr_no", "INTEGER"),
        ColumnDef("is_bse", "VARCHAR"),
        ColumnDef("lot_size", "INTEGER"),
        ColumnDef("last_updated", "BIGINT", ("NOT NULL",)),
    ),
    primary_key=("symbol",),
)

# ``series`` holds metric -> [{value, timestamp}, ...]. DuckDB rewrites updates of
# indexed columns as delete+insert, so the natural key is a plain index and its
# uniqueness is enforced by the store's keyed lock.
BID_SERIES_TABLE = TableSchema(
    name="bid_category_series",
    columns=(
        ColumnDef("id", "VARCHAR", ("NOT NULL",)),
        ColumnDef("series_class", "VARCHAR", ("NOT NULL",)),
        ColumnDef("symbol", "VARCHAR", ("NOT NULL",)),
        ColumnDef("category", "VARCHAR", ("NOT NULL",)),
        ColumnDef("sr_no", "VARCHAR", ("NOT NULL",)),
        ColumnDef("share_offered", "VARCHAR", ("NOT NULL",)),
        ColumnDef("series", "JSON", ("NOT NULL",)),
        ColumnDef("update_time", "VARCHAR", ("NOT NULL",)),
        ColumnDef("last_updated", "BIGINT", ("NOT NULL",)),
    ),
    indexes=(
        IndexDef("idx_bid_series_key", ("series_class", "symbol", "category", "sr_no")),
        IndexDef("idx_bid_series_symbol", ("symbol",)),
        IndexDef("idx_bid_series_symbol_category", ("symbol", "category")),
        IndexDef("idx_bid_series_symbol_sr_no", ("symbol", "sr_no")),
        IndexDef("idx_bid_series_last_updated", ("last_updated",)),
    ),
)


def ingestion_tables() -> Sequence[TableSchema]:
    """Return every table this core persists."""

    return (LISTINGS_TABLE, BID_SERIES_TABLE)


def ensure_ingestion_tables(conn: DuckDBPyConnection) -> None:
    """Create all ingestion tables on the provided DuckDB connection."""

    for table in ingestion_tables():
        table.ensure(conn)


def create_ingestion_ddl() -> Iterable[str]:
    """Yield CREATE statements for tables and indexes."""

    for table in ingestion_tables():
        yield table.create_ddl()
        yield from table.index_ddl()
