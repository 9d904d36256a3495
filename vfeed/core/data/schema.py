"""DuckDB table definitions backing the document store and auxiliary data."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection


@dataclass(frozen=True)
class ColumnDef:
    name: str
    data_type: str
    constraints: Sequence[str] = ()

    def render(self) -> str:
        return " ".join((self.name, self.data_type, *self.constraints))


@dataclass(frozen=True)
class TableSchema:
    """A DuckDB table keyed by ``primary_key``; rows are written as upserts."""

    name: str
    columns: Sequence[ColumnDef]
    primary_key: Sequence[str] = ()

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(column.name for column in self.columns)

    def create_ddl(self) -> str:
        definitions = [column.render() for column in self.columns]
        if self.primary_key:
            definitions.append(f"PRIMARY KEY ({', '.join(self.primary_key)})")
        return f"CREATE TABLE IF NOT EXISTS {self.name} ({', '.join(definitions)})"

    def upsert_sql(self) -> str:
        placeholders = ", ".join("?" for _ in self.columns)
        return f"INSERT OR REPLACE INTO {self.name} ({', '.join(self.column_names)}) VALUES ({placeholders})"

    def ensure(self, conn: DuckDBPyConnection) -> None:
        conn.execute(self.create_ddl())

    def upsert(self, conn: DuckDBPyConnection, rows: Iterable[Sequence[object]]) -> int:
        """Insert ``rows`` in column order, replacing rows with the same key."""

        batch = [tuple(row) for row in rows]
        if batch:
            conn.executemany(self.upsert_sql(), batch)
        return len(batch)


# ``date`` holds naive UTC instants
DOCUMENTS_TABLE = TableSchema(
    name="documents",
    columns=(
        ColumnDef("path", "VARCHAR", ("NOT NULL",)),
        ColumnDef("date", "TIMESTAMP", ("NOT NULL",)),
        ColumnDef("open", "DOUBLE"),
        ColumnDef("high", "DOUBLE"),
        ColumnDef("low", "DOUBLE"),
        ColumnDef("close", "DOUBLE"),
        ColumnDef("volume", "DOUBLE"),
    ),
    primary_key=("path", "date"),
)

MAP_FILES_TABLE = TableSchema(
    name="map_files",
    columns=(
        ColumnDef("market", "VARCHAR", ("NOT NULL",)),
        ColumnDef("permtick", "VARCHAR", ("NOT NULL",)),
        ColumnDef("date", "DATE", ("NOT NULL",)),
        ColumnDef("mapped_symbol", "VARCHAR", ("NOT NULL",)),
    ),
    primary_key=("market", "permtick", "date"),
)

FACTOR_FILES_TABLE = TableSchema(
    name="factor_files",
    columns=(
        ColumnDef("market", "VARCHAR", ("NOT NULL",)),
        ColumnDef("permtick", "VARCHAR", ("NOT NULL",)),
        ColumnDef("date", "DATE", ("NOT NULL",)),
        ColumnDef("price_factor", "DOUBLE", ("NOT NULL",)),
        ColumnDef("split_factor", "DOUBLE", ("NOT NULL",)),
        ColumnDef("reference_price", "DOUBLE"),
        ColumnDef("minimum_date", "DATE"),
    ),
    primary_key=("market", "permtick", "date"),
)

ALL_TABLES: tuple[TableSchema, ...] = (DOCUMENTS_TABLE, MAP_FILES_TABLE, FACTOR_FILES_TABLE)


def ensure_tables(conn: DuckDBPyConnection, tables: Sequence[TableSchema] = ALL_TABLES) -> None:
    for table in tables:
        table.ensure(conn)


__all__ = [
    "ColumnDef",
    "TableSchema",
    "DOCUMENTS_TABLE",
    "MAP_FILES_TABLE",
    "FACTOR_FILES_TABLE",
    "ALL_TABLES",
    "ensure_tables",
]
