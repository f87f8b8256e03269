"""PostgreSQL introspection.

Tables and views come from ``information_schema``; primary keys and indexes
from ``pg_catalog``. Each table costs one query per concern (columns,
primary key, foreign keys, indexes).
"""

from sqlscope.dialects import Dialect
from sqlscope.introspection.base import (
    IntrospectionStrategy,
    RelationRef,
    column_from_information_schema,
)
from sqlscope.models.schema import ColumnSchema, ForeignKeyInfo, IndexInfo, TableInfo, ViewInfo
from sqlscope.utils.rows import as_bool, as_text, get_row_value

TABLES_QUERY = """
SELECT table_name, table_schema
FROM information_schema.tables
WHERE table_schema NOT IN ('information_schema', 'pg_catalog')
AND table_type = 'BASE TABLE'
ORDER BY table_name
"""

VIEWS_QUERY = """
SELECT table_name, table_schema, view_definition
FROM information_schema.views
WHERE table_schema NOT IN ('information_schema', 'pg_catalog')
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

PRIMARY_KEY_QUERY = """
SELECT a.attname
FROM pg_index i
JOIN pg_attribute a ON a.attrelid = i.indrelid AND a.attnum = ANY(i.indkey)
JOIN pg_class c ON c.oid = i.indrelid
JOIN pg_namespace n ON n.oid = c.relnamespace
WHERE i.indisprimary
AND n.nspname = ?
AND c.relname = ?
ORDER BY array_position(i.indkey, a.attnum)
"""

FOREIGN_KEYS_QUERY = """
SELECT
    kcu.column_name,
    ccu.table_name AS referenced_table,
    ccu.column_name AS referenced_column
FROM information_schema.table_constraints AS tc
JOIN information_schema.key_column_usage AS kcu
    ON tc.constraint_name = kcu.constraint_name
    AND tc.table_schema = kcu.table_schema
JOIN information_schema.constraint_column_usage AS ccu
    ON ccu.constraint_name = tc.constraint_name
    AND ccu.constraint_schema = tc.table_schema
WHERE tc.constraint_type = 'FOREIGN KEY'
AND tc.table_schema = ?
AND tc.table_name = ?
"""

INDEXES_QUERY = """
SELECT
    i.relname AS index_name,
    ix.indisunique AS is_unique,
    array_agg(a.attname ORDER BY array_position(ix.indkey, a.attnum)) AS columns
FROM pg_index ix
JOIN pg_class t ON t.oid = ix.indrelid
JOIN pg_class i ON i.oid = ix.indexrelid
JOIN pg_namespace n ON n.oid = t.relnamespace
JOIN pg_attribute a ON a.attrelid = t.oid AND a.attnum = ANY(ix.indkey)
WHERE n.nspname = ?
AND t.relname = ?
AND NOT ix.indisprimary
GROUP BY i.relname, ix.indisunique
ORDER BY i.relname
"""


def _index_columns(value: object) -> list[str]:
    # array_agg arrives as a list from asyncpg, as "{a,b}" text from others
    if isinstance(value, list | tuple):
        return [str(v) for v in value]
    if isinstance(value, str):
        return [part.strip('"') for part in value.strip("{}").split(",") if part]
    return []


class PostgresStrategy(IntrospectionStrategy):
    """PostgreSQL catalog access."""

    dialect = Dialect.POSTGRES

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

    async def get_primary_key(self, ref: RelationRef) -> list[str]:
        rows = await self.query(PRIMARY_KEY_QUERY, [ref.schema, ref.name])
        return [str(get_row_value(row, "attname")) for row in rows]

    async def get_foreign_keys(self, ref: RelationRef) -> list[ForeignKeyInfo]:
        rows = await self.query(FOREIGN_KEYS_QUERY, [ref.schema, ref.name])
        return [
            ForeignKeyInfo(
                column=str(get_row_value(row, "column_name")),
                referenced_table=str(get_row_value(row, "referenced_table")),
                referenced_column=str(get_row_value(row, "referenced_column")),
            )
            for row in rows
        ]

    async def get_indexes(self, ref: RelationRef) -> list[IndexInfo]:
        rows = await self.query(INDEXES_QUERY, [ref.schema, ref.name])
        return [
            IndexInfo(
                name=str(get_row_value(row, "index_name")),
                columns=_index_columns(get_row_value(row, "columns")),
                unique=as_bool(get_row_value(row, "is_unique")),
            )
            for row in rows
        ]

    async def describe_table(self, ref: RelationRef) -> TableInfo:
        self.log.add(f"Processing table: {ref.full_name}")
        columns = await self.get_columns(ref)
        primary_key = await self.get_primary_key(ref)
        foreign_keys = await self.get_foreign_keys(ref)
        indexes = await self.get_indexes(ref)

        pk_columns = set(primary_key)
        for column in columns:
            column.is_primary_key = column.name in pk_columns

        return TableInfo(
            name=ref.name,
            schema_name=ref.schema,
            columns=columns,
            primary_key=primary_key,
            foreign_keys=foreign_keys,
            indexes=indexes,
        )

    async def describe_view(self, ref: RelationRef) -> ViewInfo:
        return ViewInfo(
            name=ref.name,
            schema_name=ref.schema,
            columns=await self.get_columns(ref),
            definition=ref.definition,
        )
