"""Query service: the validate / execute / introspect entry points.

Execution flow:
    SQL + client type -> dialect -> read-only gate -> pagination rewrite
    -> connection (with timeout) -> result shaping -> audit event
"""

import asyncio
import time

import structlog

from sqlscope.config import Settings, get_settings
from sqlscope.dialects import Dialect, resolve_dialect
from sqlscope.infrastructure.connection import Connection, is_timeout_error
from sqlscope.infrastructure.sql_parser import validate_sql
from sqlscope.introspection import introspect_schema
from sqlscope.models.errors import (
    ExecutionError,
    ExecutionTimeoutError,
    ForbiddenStatementError,
    InvalidInputError,
    SqlScopeError,
)
from sqlscope.models.query import ExecutionOutcome, PaginationInfo, ValidationResult
from sqlscope.models.schema import IntrospectionResult
from sqlscope.security.audit_logger import AuditEventType, AuditLogger, AuditStorage
from sqlscope.security.read_only import is_read_only_query
from sqlscope.services.pagination import rewrite_pagination
from sqlscope.services.result_shaper import normalize_result
from sqlscope.utils.logging import SlowQueryLogger

logger = structlog.get_logger(__name__)

EMPTY_SCHEMA_WARNING = (
    "No tables or views found in this database. The database may be empty "
    "or you may not have permission to access the tables."
)


class QueryService:
    """Stateless orchestration of the ad-hoc SQL path.

    Example:
        >>> service = QueryService()
        >>> outcome = await service.execute(conn, "SELECT * FROM users", "pg", limit=20)
        >>> outcome.pagination.has_more
    """

    def __init__(
        self,
        settings: Settings | None = None,
        audit_logger: AuditLogger | None = None,
    ):
        """Initialize the query service.

        Args:
            settings: Settings (defaults to the cached environment settings)
            audit_logger: Audit sink (defaults to the configured storage)
        """
        self.settings = settings or get_settings()
        self.audit_logger = audit_logger or AuditLogger(
            storage=AuditStorage(self.settings.audit_storage),
            file_path=self.settings.audit_file_path,
        )
        self.slow_query_logger = SlowQueryLogger(self.settings.slow_query_seconds)

    def validate(
        self,
        sql: str,
        client_type: str | Dialect | None = "pg",
        read_only: bool = False,
    ) -> ValidationResult:
        """Validate SQL for a data source's client type."""
        return validate_sql(sql, client_type, read_only=read_only)

    async def execute(
        self,
        connection: Connection,
        sql: str,
        client_type: str | Dialect | None = "pg",
        limit: int | None = None,
        offset: int | None = 0,
        timeout: float | None = None,
        data_source: str | None = None,
    ) -> ExecutionOutcome:
        """Execute a read-only query with server-side pagination.

        Args:
            connection: Live connection adapter
            sql: SQL text from the editor
            client_type: Data source client type (``pg``, ``mysql``, ...)
            limit: Requested page size (clamped by the pagination policy)
            offset: Row offset
            timeout: Seconds before the query is abandoned (defaults to settings)
            data_source: Data source identifier recorded in audit events

        Returns:
            Shaped result with pagination info

        Raises:
            InvalidInputError: SQL is empty
            ForbiddenStatementError: SQL is not a read-only statement
            ExecutionTimeoutError: Timeout elapsed
            ExecutionError: Driver failure (message passed through verbatim)
        """
        if not sql or not sql.strip():
            raise InvalidInputError("SQL query is required")

        dialect = resolve_dialect(client_type)

        if not is_read_only_query(sql):
            denied = ForbiddenStatementError()
            logger.warning("Query denied by read-only gate", dialect=dialect.value)
            await self._audit(
                AuditEventType.QUERY_DENIED,
                sql,
                dialect,
                data_source,
                error=denied,
            )
            raise denied

        paginated = rewrite_pagination(
            sql,
            limit,
            offset,
            dialect,
            self.settings.pagination_policy,
        )
        directive = paginated.directive
        timeout = timeout or self.settings.query_timeout_seconds

        start_time = time.monotonic()
        try:
            raw = await asyncio.wait_for(
                connection.execute(paginated.sql, timeout=timeout),
                timeout=timeout,
            )
        except Exception as e:
            elapsed_ms = (time.monotonic() - start_time) * 1000
            error: SqlScopeError
            if is_timeout_error(e):
                error = ExecutionTimeoutError(timeout)
            else:
                error = ExecutionError(str(e) or type(e).__name__)
            logger.warning(
                "Query execution failed",
                dialect=dialect.value,
                error_code=error.code.value,
                error=str(e),
            )
            await self._audit(
                AuditEventType.QUERY_FAILED,
                paginated.sql,
                dialect,
                data_source,
                execution_time_ms=elapsed_ms,
                error=error,
            )
            raise error from e

        elapsed = time.monotonic() - start_time
        result = normalize_result(raw)
        elapsed_ms = round(elapsed * 1000, 2)
        self.slow_query_logger.log_if_slow(
            elapsed,
            paginated.sql,
            dialect=dialect.value,
            data_source=data_source,
            row_count=result.row_count,
        )
        has_more = result.row_count >= directive.limit

        outcome = ExecutionOutcome(
            columns=result.columns,
            rows=result.rows,
            row_count=result.row_count,
            execution_time_ms=elapsed_ms,
            truncated=has_more,
            sql=paginated.sql,
            pagination=PaginationInfo(
                limit=directive.limit,
                offset=directive.offset,
                has_more=has_more,
            ),
        )

        logger.info(
            "Query executed",
            dialect=dialect.value,
            row_count=outcome.row_count,
            execution_time_ms=elapsed_ms,
        )
        await self._audit(
            AuditEventType.QUERY_EXECUTED,
            paginated.sql,
            dialect,
            data_source,
            row_count=outcome.row_count,
            execution_time_ms=elapsed_ms,
            truncated=outcome.truncated,
        )
        return outcome

    async def introspect(
        self,
        connection: Connection,
        client_type: str | Dialect | None = "pg",
    ) -> IntrospectionResult:
        """Introspect a data source's schema with the configured bounds."""
        config = self.settings.introspection
        result = await introspect_schema(
            connection,
            resolve_dialect(client_type),
            budget_seconds=config.budget_seconds,
            concurrency=config.concurrency,
        )
        if result.complete and result.schema_info.is_empty:
            result.warnings.append(EMPTY_SCHEMA_WARNING)
        return result

    async def _audit(
        self,
        event_type: AuditEventType,
        sql: str,
        dialect: Dialect,
        data_source: str | None,
        row_count: int | None = None,
        execution_time_ms: float = 0.0,
        truncated: bool = False,
        error: SqlScopeError | None = None,
    ) -> None:
        event = AuditLogger.create_event(
            event_type=event_type,
            sql=sql,
            dialect=dialect.value,
            data_source=data_source,
            row_count=row_count,
            execution_time_ms=execution_time_ms,
            truncated=truncated,
            error_code=error.code.value if error else None,
            error_message=error.message if error else None,
        )
        await self.audit_logger.log(event)
