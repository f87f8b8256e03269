"""Pytest configuration and fixtures."""

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from sqlscope.config.models import PaginationPolicy, Settings
from sqlscope.dialects import Dialect
from sqlscope.infrastructure.connection import SQLiteConnection
from sqlscope.infrastructure.sql_parser import SQLValidator
from sqlscope.security.audit_logger import AuditLogger

ScriptedConnectionFactory = Callable[[list[tuple[str, Any]]], MagicMock]


@pytest.fixture
def sql_validator() -> SQLValidator:
    """PostgreSQL validator."""
    return SQLValidator(Dialect.POSTGRES)


@pytest.fixture
def mysql_validator() -> SQLValidator:
    """MySQL validator."""
    return SQLValidator(Dialect.MYSQL)


@pytest.fixture
def pagination_policy() -> PaginationPolicy:
    """Default page-size bounds (50 / 1000)."""
    return PaginationPolicy(default_page_size=50, max_page_size=1000)


@pytest.fixture
def settings() -> Settings:
    """Settings independent of the environment and any .env file."""
    return Settings(
        _env_file=None,
        default_page_size=50,
        max_page_size=1000,
        query_timeout_seconds=5.0,
        introspection_budget_seconds=5.0,
        introspection_concurrency=2,
    )


@pytest.fixture
def mock_audit_logger() -> MagicMock:
    """Audit logger double recording every event."""
    audit = MagicMock(spec=AuditLogger)
    audit.log = AsyncMock()
    return audit


@pytest.fixture
def scripted_connection() -> ScriptedConnectionFactory:
    """Factory for connection doubles answering by SQL fragment.

    The script is a list of ``(fragment, response)`` pairs; the first
    fragment contained in the executed SQL wins. A response may be a raw
    driver value, an exception to raise, or a callable taking
    ``(sql, params)``. Unmatched SQL returns an empty row list.
    """

    def factory(script: list[tuple[str, Any]]) -> MagicMock:
        async def execute(sql: str, params: Any = None, *, timeout: float | None = None) -> Any:
            for fragment, response in script:
                if fragment in sql:
                    if isinstance(response, BaseException):
                        raise response
                    if callable(response):
                        return response(sql, params)
                    return response
            return []

        connection = MagicMock()
        connection.execute = AsyncMock(side_effect=execute)
        return connection

    return factory


@pytest.fixture
async def sqlite_connection():
    """In-memory SQLite database through the real adapter."""
    connection = SQLiteConnection.open(":memory:")
    yield connection
    await connection.close()
