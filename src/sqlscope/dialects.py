"""Dialect resolution.

Maps the client-type string stored with a data source (``pg``, ``mysql``,
``mssql``, ``sqlite3``, ``oracledb``) to the internal :class:`Dialect` shared
by the validator, the pagination rewriter and the introspector, and to the
sqlglot grammar used for parsing.
"""

from enum import Enum

from sqlscope.models.errors import UnsupportedDialectError


class Dialect(str, Enum):
    """SQL grammar/catalog variant a data source speaks."""

    POSTGRES = "postgres"
    MYSQL = "mysql"
    SQLSERVER = "sqlserver"
    SQLITE = "sqlite"
    GENERIC = "generic"


DEFAULT_CLIENT_TYPE = "pg"

CLIENT_TYPE_DIALECTS: dict[str, Dialect] = {
    "pg": Dialect.POSTGRES,
    "postgres": Dialect.POSTGRES,
    "postgresql": Dialect.POSTGRES,
    "mysql": Dialect.MYSQL,
    "mysql2": Dialect.MYSQL,
    "mssql": Dialect.SQLSERVER,
    "sqlite3": Dialect.SQLITE,
    "sqlite": Dialect.SQLITE,
    "better-sqlite3": Dialect.SQLITE,
    # No Oracle grammar or catalog support; closest approximation
    "oracledb": Dialect.GENERIC,
}

# sqlglot read/write dialect names; "" is sqlglot's base (ANSI-leaning) grammar
SQLGLOT_DIALECTS: dict[Dialect, str] = {
    Dialect.POSTGRES: "postgres",
    Dialect.MYSQL: "mysql",
    Dialect.SQLSERVER: "tsql",
    Dialect.SQLITE: "sqlite",
    Dialect.GENERIC: "",
}


def resolve_dialect(client_type: str | Dialect | None, strict: bool = False) -> Dialect:
    """Resolve a client-type string to a Dialect.

    Args:
        client_type: Stored client type, an existing Dialect, or None
            (treated as the default ``pg`` client).
        strict: Raise on unknown client types instead of falling back to
            ``Dialect.GENERIC``.

    Returns:
        Resolved dialect

    Raises:
        UnsupportedDialectError: Unknown client type in strict mode
    """
    if isinstance(client_type, Dialect):
        return client_type
    if client_type is None or not client_type.strip():
        client_type = DEFAULT_CLIENT_TYPE

    key = client_type.strip().lower()
    dialect = CLIENT_TYPE_DIALECTS.get(key)
    if dialect is None:
        try:
            return Dialect(key)
        except ValueError:
            if strict:
                raise UnsupportedDialectError(client_type, supported_client_types()) from None
            return Dialect.GENERIC
    return dialect


def sqlglot_dialect(dialect: Dialect) -> str:
    """Get the sqlglot grammar name for a dialect."""
    return SQLGLOT_DIALECTS.get(dialect, "")


def supported_client_types() -> list[str]:
    return sorted(CLIENT_TYPE_DIALECTS)
