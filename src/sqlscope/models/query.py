from enum import Enum
from typing import Any

from pydantic import Field

from sqlscope.models.base import CamelModel


class WarningType(str, Enum):
    """Advisory warning category."""
    PERFORMANCE = "performance"
    SECURITY = "security"
    STYLE = "style"


class SQLError(CamelModel):
    """A parse error, positioned when the parser reports it."""
    message: str = Field(..., min_length=1)
    line: int | None = None
    column: int | None = None
    offset: int | None = None


class SQLWarning(CamelModel):
    """Advisory finding; never blocks execution."""
    message: str
    type: WarningType
    line: int | None = None
    column: int | None = None


class ValidationResult(CamelModel):
    """Outcome of validating one SQL text (ephemeral, never persisted)."""
    is_valid: bool
    errors: list[SQLError] = Field(default_factory=list)
    warnings: list[SQLWarning] = Field(default_factory=list)
    # Parsed sqlglot expressions; in-process only
    ast: Any = Field(default=None, exclude=True)
    formatted_sql: str | None = Field(default=None, alias="formattedSQL")
    parameters: list[str] = Field(default_factory=list)
    statement_count: int = 0

    def warnings_of(self, warning_type: WarningType) -> list[SQLWarning]:
        return [w for w in self.warnings if w.type == warning_type]


class PaginationDirective(CamelModel):
    """Resolved server-side pagination applied to a query."""
    limit: int = Field(..., ge=1)
    offset: int = Field(default=0, ge=0)
    server_side: bool = True


class PaginatedQuery(CamelModel):
    """Rewritten SQL plus the directive it encodes."""
    sql: str
    directive: PaginationDirective


class ColumnMeta(CamelModel):
    """Result column name and JSON type name."""
    name: str
    type: str


class PaginationInfo(CamelModel):
    limit: int
    offset: int
    has_more: bool


class ExecutionOutcome(CamelModel):
    """Shaped result of executing a read-only query."""
    columns: list[ColumnMeta] = Field(default_factory=list)
    rows: list[dict[str, Any]] = Field(default_factory=list)
    row_count: int = 0
    execution_time_ms: float = 0.0
    truncated: bool = False
    sql: str | None = None
    pagination: PaginationInfo


class PageMeta(CamelModel):
    """Page-number view of a result set whose total size is known."""
    page: int
    page_size: int
    total_rows: int
    total_pages: int
    has_next: bool
    has_previous: bool
