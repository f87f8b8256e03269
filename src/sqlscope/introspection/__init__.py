"""Schema introspection.

One strategy per dialect, chosen from ``STRATEGIES``; adding an engine means
implementing :class:`IntrospectionStrategy` and registering it here.
"""

from sqlscope.dialects import Dialect, resolve_dialect
from sqlscope.infrastructure.connection import Connection
from sqlscope.introspection.base import IntrospectionLog, IntrospectionStrategy, RelationRef
from sqlscope.introspection.generic import GenericStrategy
from sqlscope.introspection.mssql import MSSQLStrategy
from sqlscope.introspection.mysql import MySQLStrategy
from sqlscope.introspection.postgres import PostgresStrategy
from sqlscope.introspection.sqlite import SQLiteStrategy
from sqlscope.models.schema import IntrospectionResult

STRATEGIES: dict[Dialect, type[IntrospectionStrategy]] = {
    Dialect.POSTGRES: PostgresStrategy,
    Dialect.MYSQL: MySQLStrategy,
    Dialect.SQLITE: SQLiteStrategy,
    Dialect.SQLSERVER: MSSQLStrategy,
}


def get_strategy(dialect: Dialect) -> type[IntrospectionStrategy]:
    """Strategy class for a dialect; GenericStrategy when none is registered."""
    return STRATEGIES.get(dialect, GenericStrategy)


async def introspect_schema(
    connection: Connection,
    dialect: Dialect | str | None,
    *,
    budget_seconds: float = 60.0,
    concurrency: int = 4,
) -> IntrospectionResult:
    """Introspect the live schema behind ``connection``.

    Never raises for unknown dialects or failing catalog queries; problems are
    reported through the returned logs and warnings.

    Args:
        connection: Live connection adapter
        dialect: Dialect or client-type string
        budget_seconds: Overall time budget
        concurrency: Relations described at the same time

    Returns:
        Schema, diagnostic log trail, warnings and completeness flag
    """
    resolved = resolve_dialect(dialect)
    log = IntrospectionLog(resolved)
    strategy = get_strategy(resolved)(connection, log)
    return await strategy.introspect(budget_seconds=budget_seconds, concurrency=concurrency)


__all__ = [
    "STRATEGIES",
    "GenericStrategy",
    "IntrospectionLog",
    "IntrospectionStrategy",
    "MSSQLStrategy",
    "MySQLStrategy",
    "PostgresStrategy",
    "RelationRef",
    "SQLiteStrategy",
    "get_strategy",
    "introspect_schema",
]
