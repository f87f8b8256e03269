from pydantic import Field

from sqlscope.models.base import CamelModel


class ColumnSchema(CamelModel):
    """Column information"""
    name: str
    # Engine-native type, possibly parameterized (e.g. "character varying(255)")
    type: str
    nullable: bool = True
    default_value: str | None = None
    is_primary_key: bool = False


class ForeignKeyInfo(CamelModel):
    """Foreign key reference from one column"""
    column: str
    referenced_table: str
    referenced_column: str


class IndexInfo(CamelModel):
    """Index information"""
    name: str
    columns: list[str] = Field(default_factory=list)
    unique: bool = False


class TableInfo(CamelModel):
    """Table information"""
    name: str
    schema_name: str | None = Field(default=None, alias="schema")
    columns: list[ColumnSchema] = Field(default_factory=list)
    primary_key: list[str] = Field(default_factory=list)
    foreign_keys: list[ForeignKeyInfo] = Field(default_factory=list)
    indexes: list[IndexInfo] = Field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.schema_name}.{self.name}" if self.schema_name else self.name

    @property
    def sort_key(self) -> tuple[str, str]:
        return (self.schema_name or "", self.name)


class ViewInfo(CamelModel):
    """View information"""
    name: str
    schema_name: str | None = Field(default=None, alias="schema")
    columns: list[ColumnSchema] = Field(default_factory=list)
    definition: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.schema_name}.{self.name}" if self.schema_name else self.name

    @property
    def sort_key(self) -> tuple[str, str]:
        return (self.schema_name or "", self.name)


class SchemaInfo(CamelModel):
    """Normalized schema of one data source, rebuilt on every introspection."""
    tables: list[TableInfo] = Field(default_factory=list)
    views: list[ViewInfo] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.tables and not self.views

    def get_table(self, name: str, schema: str | None = None) -> TableInfo | None:
        """Look up a table by name, optionally qualified by schema.

        Args:
            name: Table name
            schema: Schema name; ``None`` matches any schema

        Returns:
            The first matching table or None
        """
        for table in self.tables:
            if table.name == name and (schema is None or table.schema_name == schema):
                return table
        return None

    def get_view(self, name: str, schema: str | None = None) -> ViewInfo | None:
        for view in self.views:
            if view.name == name and (schema is None or view.schema_name == schema):
                return view
        return None


class IntrospectionResult(CamelModel):
    """Schema plus the diagnostic trail of the introspection that built it."""
    schema_info: SchemaInfo = Field(default_factory=SchemaInfo, alias="schema")
    logs: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    complete: bool = True
