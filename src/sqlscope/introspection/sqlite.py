"""SQLite introspection.

SQLite drivers disagree on the shape they return rows in, so every listing
logs the shape it detected. Columns, foreign keys and indexes come from
``PRAGMA`` statements, which also work on views.
"""

from typing import Any

from sqlscope.dialects import Dialect
from sqlscope.infrastructure.connection import shape_of, to_row_dicts
from sqlscope.introspection.base import IntrospectionStrategy, RelationRef
from sqlscope.models.schema import ColumnSchema, ForeignKeyInfo, IndexInfo, TableInfo, ViewInfo
from sqlscope.utils.rows import as_bool, as_text, get_row_value

TABLES_QUERY = """
SELECT name FROM sqlite_master
WHERE type = 'table'
AND name NOT LIKE 'sqlite_%'
ORDER BY name
"""

VIEWS_QUERY = """
SELECT name, sql FROM sqlite_master
WHERE type = 'view'
ORDER BY name
"""


def quote_identifier(name: str) -> str:
    """Double-quote a SQLite identifier."""
    return '"' + name.replace('"', '""') + '"'


def _relation_name(row: dict[str, Any]) -> str:
    # Drivers returning a bare list of names come back as {"value": name}
    return as_text(get_row_value(row, "name", get_row_value(row, "value"))) or ""


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


class SQLiteStrategy(IntrospectionStrategy):
    """SQLite catalog access."""

    dialect = Dialect.SQLITE

    async def probe(self) -> bool:
        try:
            await self.connection.execute("SELECT 1")
        except Exception as e:
            self.log.error(f"SQLite connection test failed: {e}", error=str(e))
            return False
        self.log.add("Database connection test successful")
        return True

    async def _rows(self, sql: str, what: str) -> list[dict[str, Any]]:
        raw = await self.query_raw(sql)
        rows = to_row_dicts(raw)
        self.log.add(f"Extracted {len(rows)} {what} as {shape_of(raw)}")
        return rows

    async def list_tables(self) -> list[RelationRef]:
        rows = await self._rows(TABLES_QUERY, "tables")
        return [RelationRef(name=_relation_name(row)) for row in rows]

    async def list_views(self) -> list[RelationRef]:
        rows = await self._rows(VIEWS_QUERY, "views")
        return [
            RelationRef(
                name=_relation_name(row),
                definition=as_text(get_row_value(row, "sql")),
            )
            for row in rows
        ]

    async def table_info(self, ref: RelationRef) -> list[dict[str, Any]]:
        self.log.add(f"Fetching columns for table: {ref.name}")
        rows = await self.query(f"PRAGMA table_info({quote_identifier(ref.name)})")
        self.log.add(f"Found {len(rows)} columns for table: {ref.name}")
        return rows

    @staticmethod
    def column_from_row(row: dict[str, Any]) -> ColumnSchema:
        return ColumnSchema(
            name=as_text(get_row_value(row, "name")) or "",
            type=as_text(get_row_value(row, "type")) or "ANY",
            nullable=_as_int(get_row_value(row, "notnull")) == 0,
            default_value=as_text(get_row_value(row, "dflt_value")),
            is_primary_key=_as_int(get_row_value(row, "pk")) > 0,
        )

    async def get_foreign_keys(self, ref: RelationRef) -> list[ForeignKeyInfo]:
        rows = await self.query(f"PRAGMA foreign_key_list({quote_identifier(ref.name)})")
        return [
            ForeignKeyInfo(
                column=as_text(get_row_value(row, "from")) or "",
                referenced_table=as_text(get_row_value(row, "table")) or "",
                # NULL "to" references the parent's primary key
                referenced_column=as_text(get_row_value(row, "to")) or "",
            )
            for row in rows
        ]

    async def get_indexes(self, ref: RelationRef) -> list[IndexInfo]:
        rows = await self.query(f"PRAGMA index_list({quote_identifier(ref.name)})")
        indexes: list[IndexInfo] = []
        for row in rows:
            if get_row_value(row, "origin") == "pk":
                continue
            name = as_text(get_row_value(row, "name")) or ""
            info = await self.query(f"PRAGMA index_info({quote_identifier(name)})")
            info.sort(key=lambda r: _as_int(get_row_value(r, "seqno")))
            indexes.append(
                IndexInfo(
                    name=name,
                    columns=[as_text(get_row_value(r, "name")) or "" for r in info],
                    unique=as_bool(get_row_value(row, "unique")),
                )
            )
        return sorted(indexes, key=lambda index: index.name)

    async def describe_table(self, ref: RelationRef) -> TableInfo:
        self.log.add(f"Processing table: {ref.name}")
        rows = await self.table_info(ref)
        columns = [self.column_from_row(row) for row in rows]
        pk_rows = sorted(
            (row for row in rows if _as_int(get_row_value(row, "pk")) > 0),
            key=lambda row: _as_int(get_row_value(row, "pk")),
        )
        return TableInfo(
            name=ref.name,
            columns=columns,
            primary_key=[as_text(get_row_value(row, "name")) or "" for row in pk_rows],
            foreign_keys=await self.get_foreign_keys(ref),
            indexes=await self.get_indexes(ref),
        )

    async def describe_view(self, ref: RelationRef) -> ViewInfo:
        rows = await self.table_info(ref)
        return ViewInfo(
            name=ref.name,
            columns=[self.column_from_row(row) for row in rows],
            definition=ref.definition,
        )
