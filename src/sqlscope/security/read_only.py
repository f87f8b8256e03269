"""Read-only execution gate.

This is the only hard execution boundary for ad-hoc SQL: a pure allow-list on
the leading keyword, with no parsing.

Known gap: a ``WITH`` statement whose CTE is data-modifying (for example
``WITH x AS (DELETE FROM t RETURNING *) SELECT * FROM x``) passes this check
on engines with writable CTEs. The validator reports such statements.
"""

from sqlscope.models.errors import ForbiddenStatementError

READ_ONLY_PREFIXES: tuple[str, ...] = (
    "SELECT",
    "WITH",
    "EXPLAIN",
    "SHOW",
    "DESCRIBE",
)


def is_read_only_query(sql: str) -> bool:
    """Check whether a statement starts with an allowed read keyword.

    Args:
        sql: SQL statement

    Returns:
        True if the trimmed, upper-cased SQL starts with SELECT, WITH,
        EXPLAIN, SHOW or DESCRIBE
    """
    return sql.strip().upper().startswith(READ_ONLY_PREFIXES)


def ensure_read_only(sql: str) -> None:
    """Raise unless ``sql`` passes the read-only gate.

    Raises:
        ForbiddenStatementError: Statement is not in the read-only allow-list
    """
    if not is_read_only_query(sql):
        raise ForbiddenStatementError()
