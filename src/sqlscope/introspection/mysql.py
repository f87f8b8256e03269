"""MySQL introspection.

Relations are scoped to the connection's current database. Columns come from
``DESCRIBE``, which also marks primary-key columns (``Key = 'PRI'``).
"""

from sqlscope.dialects import Dialect
from sqlscope.introspection.base import IntrospectionStrategy, RelationRef
from sqlscope.models.schema import ColumnSchema, TableInfo, ViewInfo
from sqlscope.utils.rows import as_text, get_row_value

TABLES_QUERY = """
SELECT table_name
FROM information_schema.tables
WHERE table_schema = DATABASE()
AND table_type = 'BASE TABLE'
ORDER BY table_name
"""

VIEWS_QUERY = """
SELECT table_name, view_definition
FROM information_schema.views
WHERE table_schema = DATABASE()
ORDER BY table_name
"""


def quote_identifier(name: str) -> str:
    """Backtick-quote a MySQL identifier."""
    return "`" + name.replace("`", "``") + "`"


class MySQLStrategy(IntrospectionStrategy):
    """MySQL catalog access."""

    dialect = Dialect.MYSQL

    async def list_tables(self) -> list[RelationRef]:
        rows = await self.query(TABLES_QUERY)
        # MySQL 8 returns upper-case information_schema keys
        return [RelationRef(name=as_text(get_row_value(row, "table_name")) or "") for row in rows]

    async def list_views(self) -> list[RelationRef]:
        rows = await self.query(VIEWS_QUERY)
        return [
            RelationRef(
                name=as_text(get_row_value(row, "table_name")) or "",
                definition=as_text(get_row_value(row, "view_definition")),
            )
            for row in rows
        ]

    async def get_columns(self, ref: RelationRef) -> list[ColumnSchema]:
        rows = await self.query(f"DESCRIBE {quote_identifier(ref.name)}")
        return [
            ColumnSchema(
                name=as_text(get_row_value(row, "Field")) or "",
                type=as_text(get_row_value(row, "Type")) or "",
                nullable=get_row_value(row, "Null") == "YES",
                default_value=as_text(get_row_value(row, "Default")),
                is_primary_key=get_row_value(row, "Key") == "PRI",
            )
            for row in rows
        ]

    async def describe_table(self, ref: RelationRef) -> TableInfo:
        self.log.add(f"Processing table: {ref.name}")
        columns = await self.get_columns(ref)
        return TableInfo(
            name=ref.name,
            columns=columns,
            primary_key=[c.name for c in columns if c.is_primary_key],
        )

    async def describe_view(self, ref: RelationRef) -> ViewInfo:
        return ViewInfo(
            name=ref.name,
            columns=await self.get_columns(ref),
            definition=ref.definition,
        )
