import re
from functools import lru_cache

import sqlglot
import structlog
from sqlglot import exp
from sqlglot.errors import ParseError, SqlglotError

from sqlscope.dialects import Dialect, resolve_dialect, sqlglot_dialect
from sqlscope.models.errors import SQLParseError
from sqlscope.models.query import SQLError, SQLWarning, ValidationResult, WarningType
from sqlscope.security.read_only import is_read_only_query
from sqlscope.security.scanners import scan_performance, scan_security
from sqlscope.utils.lexing import (
    extract_named_parameters,
    line_column_to_offset,
    mask_for_dialect,
)

logger = structlog.get_logger(__name__)

LINE_PATTERN = re.compile(r"\bline\s*:?\s*(\d+)", re.IGNORECASE)
COLUMN_PATTERN = re.compile(r"\bcol(?:umn)?\s*:?\s*(\d+)", re.IGNORECASE)
ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*m")

# Statement types that modify data, schema, privileges or session state
FORBIDDEN_STATEMENT_TYPES: tuple[type[exp.Expression], ...] = (
    exp.Insert,
    exp.Update,
    exp.Delete,
    exp.Merge,
    exp.Drop,
    exp.Create,
    exp.Alter,
    exp.TruncateTable,
    exp.Grant,
    exp.Revoke,
    exp.Set,
)

DATA_MODIFYING_TYPES: tuple[type[exp.Expression], ...] = (
    exp.Insert,
    exp.Update,
    exp.Delete,
    exp.Merge,
)

WRITABLE_CTE_WARNING = (
    "Data-modifying statement inside a WITH query - it passes the read-only "
    "gate but changes data on engines with writable CTEs"
)


class SQLValidator:
    """SQL parser and validator for one dialect."""

    def __init__(self, dialect: Dialect = Dialect.POSTGRES) -> None:
        """Initialize the validator.

        Args:
            dialect: Resolved dialect; selects the sqlglot grammar
        """
        self.dialect = dialect
        self.grammar = sqlglot_dialect(dialect) or None

    def parse(self, sql: str) -> list[exp.Expression]:
        """Parse SQL into statements.

        Args:
            sql: SQL text

        Returns:
            Parsed statements (empty statements dropped)

        Raises:
            SQLParseError: SQL does not parse under this dialect
        """
        try:
            statements = sqlglot.parse(sql, read=self.grammar)
        except SqlglotError as e:
            message, line, column = self._describe_error(e)
            raise SQLParseError(sql, message, line, column) from e
        return [stmt for stmt in statements if stmt is not None]

    def validate(self, sql: str, read_only: bool = False) -> ValidationResult:
        """Validate SQL.

        Syntax errors make the result invalid with exactly one error. On a
        successful parse the result carries a best-effort formatted copy,
        advisory warnings and the named parameters.

        Args:
            sql: SQL text
            read_only: Also reject statements that are not reads

        Returns:
            Validation result
        """
        if not sql or not sql.strip():
            return self._invalid("SQL query cannot be empty")

        try:
            statements = self.parse(sql)
        except SQLParseError as e:
            return ValidationResult(
                is_valid=False,
                errors=[
                    SQLError(
                        message=e.message or "Invalid SQL",
                        line=e.line,
                        column=e.column,
                        offset=(
                            line_column_to_offset(sql, e.line, e.column)
                            if e.line is not None and e.column is not None
                            else None
                        ),
                    )
                ],
            )

        if not statements:
            return self._invalid("No valid SQL statement found")

        warnings: list[SQLWarning] = []
        warnings.extend(scan_security(sql))
        if self._has_writable_cte(statements):
            warnings.append(SQLWarning(message=WRITABLE_CTE_WARNING, type=WarningType.SECURITY))
        warnings.extend(scan_performance(sql))

        errors: list[SQLError] = []
        if read_only:
            type_error = self._check_read_only(statements)
            if type_error:
                errors.append(SQLError(message=type_error))

        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            ast=statements,
            formatted_sql=self._format_statements(statements),
            parameters=extract_named_parameters(mask_for_dialect(sql, self.dialect)),
            statement_count=len(statements),
        )

    def format(self, sql: str) -> str:
        """Pretty-print SQL with upper-case keywords.

        Returns the input unchanged when it cannot be parsed or rendered.
        """
        try:
            statements = self.parse(sql)
        except SQLParseError:
            return sql
        return self._format_statements(statements) or sql

    def extract_tables(self, sql: str) -> list[str]:
        """Extract referenced table names (CTE names excluded).

        Args:
            sql: SQL text

        Returns:
            Unique table names in order of discovery; empty on any failure
        """
        try:
            tables: dict[str, None] = {}
            for stmt in self.parse(sql):
                cte_names = {cte.alias_or_name for cte in stmt.find_all(exp.CTE)}
                for table in stmt.find_all(exp.Table):
                    if table.name and table.name not in cte_names:
                        tables.setdefault(table.name, None)
            return list(tables)
        except Exception:
            return []

    def extract_columns(self, sql: str) -> list[str]:
        """Extract referenced column names.

        Args:
            sql: SQL text

        Returns:
            Unique column names in order of discovery; empty on any failure
        """
        try:
            columns: dict[str, None] = {}
            for stmt in self.parse(sql):
                for column in stmt.find_all(exp.Column):
                    name = column.name
                    if name and name != "*":
                        columns.setdefault(name, None)
            return list(columns)
        except Exception:
            return []

    def _format_statements(self, statements: list[exp.Expression]) -> str | None:
        try:
            return ";\n\n".join(
                stmt.sql(dialect=self.grammar, pretty=True) for stmt in statements
            )
        except SqlglotError as e:
            # Formatting failure never invalidates the query
            logger.debug("SQL formatting failed", dialect=self.dialect.value, error=str(e))
            return None

    def _check_read_only(self, statements: list[exp.Expression]) -> str | None:
        for stmt in statements:
            if isinstance(stmt, FORBIDDEN_STATEMENT_TYPES):
                return f"Statement type '{stmt.key}' is not allowed (read-only queries only)"
            if isinstance(stmt, exp.Command) and not is_read_only_query(stmt.sql()):
                return (
                    f"Statement type '{stmt.name or stmt.key}' is not allowed "
                    "(read-only queries only)"
                )
            for cte in stmt.find_all(exp.CTE):
                if isinstance(cte.this, DATA_MODIFYING_TYPES):
                    return (
                        f"CTE contains forbidden statement type '{cte.this.key}' "
                        "(read-only queries only)"
                    )
        return None

    def _has_writable_cte(self, statements: list[exp.Expression]) -> bool:
        for stmt in statements:
            if isinstance(stmt, DATA_MODIFYING_TYPES) and stmt.args.get("with"):
                return True
            for cte in stmt.find_all(exp.CTE):
                if isinstance(cte.this, DATA_MODIFYING_TYPES):
                    return True
        return False

    @staticmethod
    def _describe_error(error: SqlglotError) -> tuple[str, int | None, int | None]:
        """Extract a clean message and best-effort line/column from a parser error."""
        raw = ANSI_ESCAPE_PATTERN.sub("", str(error)).strip()
        message = raw.splitlines()[0].strip() if raw else ""
        if not message:
            message = type(error).__name__

        line: int | None = None
        column: int | None = None
        if isinstance(error, ParseError) and error.errors:
            first = error.errors[0]
            line = first.get("line")
            column = first.get("col")

        if line is None:
            line_match = LINE_PATTERN.search(raw)
            line = int(line_match.group(1)) if line_match else None
        if column is None:
            column_match = COLUMN_PATTERN.search(raw)
            column = int(column_match.group(1)) if column_match else None

        return message, line, column

    @staticmethod
    def _invalid(message: str) -> ValidationResult:
        return ValidationResult(is_valid=False, errors=[SQLError(message=message)])


@lru_cache(maxsize=8)
def get_validator(dialect: Dialect) -> SQLValidator:
    """Shared stateless validator per dialect."""
    return SQLValidator(dialect)


def validate_sql(
    sql: str,
    client_type: str | Dialect | None = "pg",
    read_only: bool = False,
) -> ValidationResult:
    """Validate SQL for a data source client type (``pg``, ``mysql``, ...)."""
    return get_validator(resolve_dialect(client_type)).validate(sql, read_only=read_only)


def format_sql_code(sql: str, client_type: str | Dialect | None = "pg") -> str:
    """Pretty-print SQL; returns the input unchanged on failure."""
    return get_validator(resolve_dialect(client_type)).format(sql)


def extract_tables(sql: str, client_type: str | Dialect | None = "pg") -> list[str]:
    return get_validator(resolve_dialect(client_type)).extract_tables(sql)


def extract_columns(sql: str, client_type: str | Dialect | None = "pg") -> list[str]:
    return get_validator(resolve_dialect(client_type)).extract_columns(sql)
