"""Business logic services."""

from sqlscope.services.pagination import (
    build_sql_pagination,
    calculate_offset,
    create_pagination_meta,
    rewrite_pagination,
)
from sqlscope.services.query_service import QueryService
from sqlscope.services.result_shaper import NormalizedResult, normalize_result

__all__ = [
    "NormalizedResult",
    "QueryService",
    "build_sql_pagination",
    "calculate_offset",
    "create_pagination_meta",
    "normalize_result",
    "rewrite_pagination",
]
