"""Shape raw driver results into the uniform columns/rows response."""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from sqlscope.infrastructure.connection import RawResult, coerce_raw_result, to_row_dicts
from sqlscope.models.query import ColumnMeta


@dataclass
class NormalizedResult:
    """Columns and rows in the single shape the core consumes."""

    columns: list[ColumnMeta] = field(default_factory=list)
    rows: list[dict[str, Any]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


def json_type_name(value: Any) -> str:
    """JSON-level type name of a driver value.

    Returns one of ``string``, ``number``, ``boolean``, ``null``,
    ``datetime`` or ``object``.
    """
    if value is None:
        return "null"
    # bool before number: bool is an int subclass
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int | float | Decimal):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, datetime | date | time):
        return "datetime"
    return "object"


def normalize_result(raw: RawResult | Any) -> NormalizedResult:
    """Normalize a driver result.

    Columns come from the first row's keys, typed by the first row's values.
    An empty result set has no columns and no rows, which is distinct from an
    execution error.

    Args:
        raw: A RawResult variant (anything else is coerced first)

    Returns:
        Normalized columns and rows
    """
    rows = to_row_dicts(coerce_raw_result(raw))
    if not rows:
        return NormalizedResult()

    first = rows[0]
    columns = [ColumnMeta(name=name, type=json_type_name(value)) for name, value in first.items()]
    return NormalizedResult(columns=columns, rows=rows)
