"""Fallback for engines without catalog support: an empty schema."""

from sqlscope.dialects import Dialect
from sqlscope.introspection.base import IntrospectionStrategy, RelationRef
from sqlscope.models.schema import TableInfo, ViewInfo


class GenericStrategy(IntrospectionStrategy):
    """Returns no relations and never queries the connection."""

    dialect = Dialect.GENERIC

    async def probe(self) -> bool:
        self.log.add("No catalog support for this engine; returning an empty schema")
        return False

    async def list_tables(self) -> list[RelationRef]:
        return []

    async def list_views(self) -> list[RelationRef]:
        return []

    async def describe_table(self, ref: RelationRef) -> TableInfo:
        return TableInfo(name=ref.name, schema_name=ref.schema)

    async def describe_view(self, ref: RelationRef) -> ViewInfo:
        return ViewInfo(name=ref.name, schema_name=ref.schema, definition=ref.definition)
