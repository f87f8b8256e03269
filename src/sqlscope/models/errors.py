from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Error codes surfaced to callers."""
    SYNTAX_ERROR = "SYNTAX_ERROR"
    FORBIDDEN = "FORBIDDEN"
    INVALID_INPUT = "INVALID_INPUT"
    INTROSPECTION_ERROR = "INTROSPECTION_ERROR"
    EXECUTION_TIMEOUT = "EXECUTION_TIMEOUT"
    EXECUTION_ERROR = "EXECUTION_ERROR"
    UNSUPPORTED_DIALECT = "UNSUPPORTED_DIALECT"


class ErrorResponse(BaseModel):
    """Error response body."""
    success: bool = False
    error_code: ErrorCode
    error_message: str
    details: dict | None = None


class SqlScopeError(Exception):
    """Base exception for sqlscope."""
    def __init__(self, code: ErrorCode, message: str, details: dict | None = None):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error_code=self.code,
            error_message=self.message,
            details=self.details
        )


class SQLParseError(SqlScopeError):
    def __init__(
        self,
        sql: str,
        error: str,
        line: int | None = None,
        column: int | None = None,
    ):
        self.line = line
        self.column = column
        super().__init__(
            ErrorCode.SYNTAX_ERROR,
            error,
            {"sql": sql, "line": line, "column": column}
        )


class ForbiddenStatementError(SqlScopeError):
    def __init__(self, reason: str = "Only SELECT queries are allowed in the SQL editor"):
        super().__init__(ErrorCode.FORBIDDEN, reason)


class InvalidInputError(SqlScopeError):
    def __init__(self, message: str):
        super().__init__(ErrorCode.INVALID_INPUT, message)


class SchemaIntrospectionError(SqlScopeError):
    def __init__(self, relation: str, error: str):
        super().__init__(
            ErrorCode.INTROSPECTION_ERROR,
            f"Failed to introspect '{relation}': {error}",
            {"relation": relation}
        )


class ExecutionTimeoutError(SqlScopeError):
    def __init__(self, timeout: float):
        super().__init__(
            ErrorCode.EXECUTION_TIMEOUT,
            f"Query execution timed out after {timeout} seconds. "
            "Try narrowing the filters or lowering the page size.",
            {"timeout_seconds": timeout}
        )


class ExecutionError(SqlScopeError):
    """Driver failure; the driver's message is passed through verbatim."""
    def __init__(self, error: str):
        super().__init__(ErrorCode.EXECUTION_ERROR, error)


class UnsupportedDialectError(SqlScopeError):
    def __init__(self, client_type: str, available: list[str]):
        super().__init__(
            ErrorCode.UNSUPPORTED_DIALECT,
            f"Client type '{client_type}' is not supported. Available: {', '.join(available)}",
            {"available_client_types": available}
        )
