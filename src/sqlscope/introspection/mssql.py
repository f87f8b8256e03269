"""SQL Server introspection.

Only ``INFORMATION_SCHEMA`` is read, so tables carry columns but no
primary-key, foreign-key or index detail.
"""

from sqlscope.dialects import Dialect
from sqlscope.introspection.base import (
    IntrospectionStrategy,
    RelationRef,
    column_from_information_schema,
)
from sqlscope.models.schema import ColumnSchema, TableInfo, ViewInfo
from sqlscope.utils.rows import as_text, get_row_value

TABLES_QUERY = """
SELECT table_name, table_schema
FROM information_schema.tables
WHERE table_type = 'BASE TABLE'
ORDER BY table_name
"""

VIEWS_QUERY = """
SELECT table_name, table_schema, view_definition
FROM information_schema.views
ORDER BY table_name
"""

COLUMNS_QUERY = """
SELECT
    column_name,
    data_type,
    is_nullable,
    column_default,
    character_maximum_length
FROM information_schema.columns
WHERE table_schema = ? AND table_name = ?
ORDER BY ordinal_position
"""


class MSSQLStrategy(IntrospectionStrategy):
    """SQL Server catalog access."""

    dialect = Dialect.SQLSERVER

    async def list_tables(self) -> list[RelationRef]:
        rows = await self.query(TABLES_QUERY)
        return [
            RelationRef(
                name=as_text(get_row_value(row, "table_name")) or "",
                schema=as_text(get_row_value(row, "table_schema")),
            )
            for row in rows
        ]

    async def list_views(self) -> list[RelationRef]:
        rows = await self.query(VIEWS_QUERY)
        return [
            RelationRef(
                name=as_text(get_row_value(row, "table_name")) or "",
                schema=as_text(get_row_value(row, "table_schema")),
                definition=as_text(get_row_value(row, "view_definition")),
            )
            for row in rows
        ]

    async def get_columns(self, ref: RelationRef) -> list[ColumnSchema]:
        rows = await self.query(COLUMNS_QUERY, [ref.schema, ref.name])
        return [column_from_information_schema(row) for row in rows]

    async def describe_table(self, ref: RelationRef) -> TableInfo:
        self.log.add(f"Processing table: {ref.full_name}")
        return TableInfo(name=ref.name, schema_name=ref.schema, columns=await self.get_columns(ref))

    async def describe_view(self, ref: RelationRef) -> ViewInfo:
        return ViewInfo(
            name=ref.name,
            schema_name=ref.schema,
            columns=await self.get_columns(ref),
            definition=ref.definition,
        )
