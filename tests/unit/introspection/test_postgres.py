"""Unit tests for PostgreSQL introspection."""

from sqlscope.introspection import introspect_schema


def _columns(sql, params):
    schema, table = params
    if table == "users":
        return [
            {
                "column_name": "id",
                "data_type": "integer",
                "is_nullable": "NO",
                "column_default": "nextval('users_id_seq'::regclass)",
                "character_maximum_length": None,
            },
            {
                "column_name": "email",
                "data_type": "character varying",
                "is_nullable": "YES",
                "column_default": None,
                "character_maximum_length": 255,
            },
        ]
    if table == "orders":
        return [
            {
                "column_name": "id",
                "data_type": "integer",
                "is_nullable": "NO",
                "column_default": None,
                "character_maximum_length": None,
            },
            {
                "column_name": "user_id",
                "data_type": "integer",
                "is_nullable": "NO",
                "column_default": None,
                "character_maximum_length": None,
            },
        ]
    return [
        {
            "column_name": "email",
            "data_type": "character varying",
            "is_nullable": "YES",
            "column_default": None,
            "character_maximum_length": 255,
        }
    ]


def _foreign_keys(sql, params):
    if params[1] == "orders":
        return [
            {"column_name": "user_id", "referenced_table": "users", "referenced_column": "id"}
        ]
    return []


def _indexes(sql, params):
    if params[1] == "users":
        return {
            "rows": [{"index_name": "users_email_key", "is_unique": True, "columns": ["email"]}]
        }
    return {"rows": [{"index_name": "orders_user_idx", "is_unique": False, "columns": "{user_id}"}]}


def _script():
    return [
        (
            "information_schema.tables",
            [
                {"table_name": "users", "table_schema": "public"},
                {"table_name": "orders", "table_schema": "public"},
                {"table_name": "audit", "table_schema": "archive"},
            ],
        ),
        (
            "information_schema.views",
            [
                {
                    "table_name": "user_emails",
                    "table_schema": "public",
                    "view_definition": " SELECT users.email FROM users;",
                }
            ],
        ),
        ("information_schema.columns", _columns),
        ("WHERE i.indisprimary", lambda sql, params: [{"attname": "id"}]),
        ("FOREIGN KEY", _foreign_keys),
        ("array_agg", _indexes),
    ]


class TestPostgresIntrospection:
    """Tests for PostgresStrategy through introspect_schema."""

    async def test_tables_sorted_by_schema_then_name(self, scripted_connection) -> None:
        """Test deterministic (schema, name) ordering."""
        result = await introspect_schema(scripted_connection(_script()), "pg")

        assert [t.full_name for t in result.schema_info.tables] == [
            "archive.audit",
            "public.orders",
            "public.users",
        ]
        assert result.complete is True
        assert result.warnings == []

    async def test_table_detail(self, scripted_connection) -> None:
        """Test columns, keys and indexes of one table."""
        result = await introspect_schema(scripted_connection(_script()), "pg")
        users = result.schema_info.get_table("users", "public")

        assert users is not None
        assert [c.name for c in users.columns] == ["id", "email"]
        assert users.columns[1].type == "character varying(255)"
        assert users.columns[0].nullable is False
        assert users.columns[0].is_primary_key is True
        assert users.columns[1].is_primary_key is False
        assert users.primary_key == ["id"]
        assert users.indexes[0].name == "users_email_key"
        assert users.indexes[0].unique is True

    async def test_foreign_keys_and_text_arrays(self, scripted_connection) -> None:
        """Test foreign keys and '{a,b}' index column text."""
        result = await introspect_schema(scripted_connection(_script()), "pg")
        orders = result.schema_info.get_table("orders")

        assert orders is not None
        assert orders.foreign_keys[0].referenced_table == "users"
        assert orders.foreign_keys[0].referenced_column == "id"
        assert orders.indexes[0].columns == ["user_id"]

    async def test_views(self, scripted_connection) -> None:
        """Test view columns and definitions."""
        result = await introspect_schema(scripted_connection(_script()), "pg")
        view = result.schema_info.get_view("user_emails")

        assert view is not None
        assert view.schema_name == "public"
        assert view.definition == " SELECT users.email FROM users;"
        assert [c.name for c in view.columns] == ["email"]

    async def test_catalog_queries_are_parameterized(self, scripted_connection) -> None:
        """Test that table names are passed as parameters, never inlined."""
        connection = scripted_connection(_script())
        await introspect_schema(connection, "pg")

        for call in connection.execute.await_args_list:
            sql = call.args[0]
            if "information_schema.columns" in sql:
                assert "users" not in sql
                assert call.args[1][0] in ("public", "archive")

    async def test_log_trail(self, scripted_connection) -> None:
        """Test the timestamped diagnostic log lines."""
        result = await introspect_schema(scripted_connection(_script()), "postgres")

        assert result.logs[0].startswith("[")
        assert result.logs[0].endswith("Starting postgres schema introspection")
        assert any(line.endswith("Processing table: public.users") for line in result.logs)
        assert result.logs[-1].endswith("Schema introspection complete: 3 tables, 1 views")

    async def test_serialized_shape(self, scripted_connection) -> None:
        """Test the camelCase JSON of an introspection result."""
        result = await introspect_schema(scripted_connection(_script()), "pg")
        data = result.model_dump(by_alias=True)

        table = data["schema"]["tables"][0]
        assert table["schema"] == "archive"
        assert "primaryKey" in table
        assert "foreignKeys" in table
        assert "isPrimaryKey" in table["columns"][0]
