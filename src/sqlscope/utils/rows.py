"""Row access helpers shared by the introspection strategies."""

from typing import Any


def get_row_value(row: dict[str, Any], key: str, default: Any = None) -> Any:
    """Get a value from a row dict, trying lowercase, uppercase and exact keys.

    MySQL 8 and SQL Server return UPPERCASE ``information_schema`` column
    names, while PostgreSQL uses lowercase. This helper normalizes the access.

    Args:
        row: Row dictionary from a driver adapter
        key: Column name (in lowercase)
        default: Value returned when no variant of the key is present

    Returns:
        Value from the row, or ``default`` if not found
    """
    for candidate in (key, key.upper(), key.lower()):
        if candidate in row:
            return row[candidate]
    lowered = key.lower()
    for name, value in row.items():
        if name.lower() == lowered:
            return value
    return default


def as_bool(value: Any) -> bool:
    """Interpret catalog booleans: bool, 1/0, 't'/'f', 'YES'/'NO'."""
    if isinstance(value, str):
        return value.strip().lower() in ("t", "true", "yes", "y", "1")
    return bool(value)


def as_text(value: Any) -> str | None:
    """Stringify catalog values (defaults may come back as numbers or bytes)."""
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)
