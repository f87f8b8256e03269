"""Data models."""

from sqlscope.models.errors import (
    ErrorCode,
    ErrorResponse,
    ExecutionError,
    ExecutionTimeoutError,
    ForbiddenStatementError,
    InvalidInputError,
    SchemaIntrospectionError,
    SQLParseError,
    SqlScopeError,
    UnsupportedDialectError,
)
from sqlscope.models.query import (
    ColumnMeta,
    ExecutionOutcome,
    PageMeta,
    PaginatedQuery,
    PaginationDirective,
    PaginationInfo,
    SQLError,
    SQLWarning,
    ValidationResult,
    WarningType,
)
from sqlscope.models.schema import (
    ColumnSchema,
    ForeignKeyInfo,
    IndexInfo,
    IntrospectionResult,
    SchemaInfo,
    TableInfo,
    ViewInfo,
)

__all__ = [
    # Errors
    "ErrorCode",
    "ErrorResponse",
    "ExecutionError",
    "ExecutionTimeoutError",
    "ForbiddenStatementError",
    "InvalidInputError",
    "SchemaIntrospectionError",
    "SQLParseError",
    "SqlScopeError",
    "UnsupportedDialectError",
    # Query
    "ColumnMeta",
    "ExecutionOutcome",
    "PageMeta",
    "PaginatedQuery",
    "PaginationDirective",
    "PaginationInfo",
    "SQLError",
    "SQLWarning",
    "ValidationResult",
    "WarningType",
    # Schema
    "ColumnSchema",
    "ForeignKeyInfo",
    "IndexInfo",
    "IntrospectionResult",
    "SchemaInfo",
    "TableInfo",
    "ViewInfo",
]
