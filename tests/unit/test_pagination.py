"""Unit tests for pagination rewriting and page helpers."""

import pytest

from sqlscope.config.models import PaginationPolicy
from sqlscope.dialects import Dialect
from sqlscope.infrastructure.sql_parser import validate_sql
from sqlscope.services.pagination import (
    build_sql_pagination,
    calculate_offset,
    create_pagination_meta,
    rewrite_pagination,
)


def _rewrite(
    sql: str,
    policy: PaginationPolicy,
    limit: int | None = None,
    offset: int = 0,
    dialect: Dialect = Dialect.POSTGRES,
) -> str:
    return rewrite_pagination(sql, limit, offset, dialect, policy).sql


class TestRewriteLimit:
    """Tests for LIMIT/OFFSET dialects."""

    def test_appends_limit_and_offset(self, pagination_policy: PaginationPolicy) -> None:
        """Test that an unbounded query gets LIMIT and OFFSET."""
        sql = _rewrite("SELECT * FROM t", pagination_policy, limit=50)
        assert sql == "SELECT * FROM t LIMIT 50 OFFSET 0"

    def test_default_page_size(self, pagination_policy: PaginationPolicy) -> None:
        """Test that no requested limit means the default page size."""
        result = rewrite_pagination(
            "SELECT * FROM t", None, None, Dialect.SQLITE, pagination_policy
        )

        assert result.sql == "SELECT * FROM t LIMIT 50 OFFSET 0"
        assert result.directive.limit == 50
        assert result.directive.offset == 0
        assert result.directive.server_side is True

    @pytest.mark.parametrize("offset", [0, 20])
    def test_idempotent(self, pagination_policy: PaginationPolicy, offset: int) -> None:
        """Test that rewriting rewritten SQL changes nothing."""
        once = _rewrite("SELECT * FROM t", pagination_policy, limit=50, offset=offset)
        twice = _rewrite(once, pagination_policy, limit=50, offset=offset)

        assert twice == once
        assert twice.upper().count("LIMIT") == 1
        assert twice.upper().count("OFFSET") == 1

    def test_clamps_to_max_page_size(self, pagination_policy: PaginationPolicy) -> None:
        """Test that a huge request is clamped in the SQL and the directive."""
        result = rewrite_pagination(
            "SELECT * FROM t", 100000, 0, Dialect.POSTGRES, pagination_policy
        )

        assert result.sql == "SELECT * FROM t LIMIT 1000 OFFSET 0"
        assert result.directive.limit == 1000

    def test_smaller_existing_limit_kept(self, pagination_policy: PaginationPolicy) -> None:
        """Test that a user LIMIT below the page size is preserved."""
        assert _rewrite("SELECT * FROM t LIMIT 10", pagination_policy, limit=50) == (
            "SELECT * FROM t LIMIT 10"
        )

    def test_larger_existing_limit_clamped(self, pagination_policy: PaginationPolicy) -> None:
        """Test that a user LIMIT above the page size is lowered."""
        assert _rewrite("SELECT * FROM t LIMIT 5000", pagination_policy, limit=100) == (
            "SELECT * FROM t LIMIT 100"
        )

    def test_existing_limit_gets_requested_offset(
        self, pagination_policy: PaginationPolicy
    ) -> None:
        """Test that an offset is added after an existing LIMIT."""
        assert _rewrite("SELECT * FROM t LIMIT 10", pagination_policy, offset=30) == (
            "SELECT * FROM t LIMIT 10 OFFSET 30"
        )

    def test_existing_offset_kept(self, pagination_policy: PaginationPolicy) -> None:
        """Test that a user OFFSET is never duplicated."""
        sql = _rewrite("SELECT * FROM t LIMIT 10 OFFSET 5", pagination_policy, offset=30)
        assert sql == "SELECT * FROM t LIMIT 10 OFFSET 5"

    def test_offset_without_limit(self, pagination_policy: PaginationPolicy) -> None:
        """Test that LIMIT goes in front of a bare OFFSET."""
        sql = _rewrite("SELECT * FROM t ORDER BY id OFFSET 10", pagination_policy)
        assert sql == "SELECT * FROM t ORDER BY id LIMIT 50 OFFSET 10"

    def test_limit_all_clamped(self, pagination_policy: PaginationPolicy) -> None:
        """Test that LIMIT ALL becomes the effective page size."""
        assert _rewrite("SELECT * FROM t LIMIT ALL", pagination_policy) == (
            "SELECT * FROM t LIMIT 50"
        )

    def test_mysql_offset_count_form(self, pagination_policy: PaginationPolicy) -> None:
        """Test that MySQL LIMIT offset, count clamps the count only."""
        sql = _rewrite(
            "SELECT * FROM t LIMIT 5, 2000", pagination_policy, limit=100, dialect=Dialect.MYSQL
        )
        assert sql == "SELECT * FROM t LIMIT 5, 100"

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT 'LIMIT 5' AS note FROM t",
            "SELECT * FROM t -- LIMIT 5\nWHERE a = 1",
            "SELECT * FROM t /* LIMIT 5 */",
            'SELECT "limit 5" FROM t',
        ],
    )
    def test_ignores_limit_in_literals_and_comments(
        self, pagination_policy: PaginationPolicy, sql: str
    ) -> None:
        """Test that LIMIT text outside real SQL does not count."""
        rewritten = _rewrite(sql, pagination_policy)
        assert "LIMIT 50 OFFSET 0" in rewritten
        assert rewritten.upper().count("LIMIT") == 2

    def test_ignores_limit_in_subquery(self, pagination_policy: PaginationPolicy) -> None:
        """Test that a sub-query LIMIT does not bound the outer query."""
        sql = _rewrite("SELECT * FROM (SELECT * FROM t LIMIT 5) s", pagination_policy)
        assert sql == "SELECT * FROM (SELECT * FROM t LIMIT 5) s LIMIT 50 OFFSET 0"

    def test_trailing_semicolon_dropped(self, pagination_policy: PaginationPolicy) -> None:
        """Test that the clause goes before the statement terminator."""
        assert _rewrite("SELECT * FROM t;", pagination_policy) == (
            "SELECT * FROM t LIMIT 50 OFFSET 0"
        )

    def test_trailing_comment_kept_after_clause(
        self, pagination_policy: PaginationPolicy
    ) -> None:
        """Test that trailing comments do not swallow the injected clause."""
        assert _rewrite("SELECT * FROM t -- all rows", pagination_policy) == (
            "SELECT * FROM t LIMIT 50 OFFSET 0 -- all rows"
        )

    def test_negative_offset_becomes_zero(self, pagination_policy: PaginationPolicy) -> None:
        """Test that negative offsets are treated as zero."""
        result = rewrite_pagination("SELECT 1", 10, -5, Dialect.POSTGRES, pagination_policy)
        assert result.directive.offset == 0
        assert result.sql == "SELECT 1 LIMIT 10 OFFSET 0"

    @pytest.mark.parametrize("sql", ["SHOW TABLES", "describe users", "EXPLAIN SELECT * FROM t"])
    def test_passthrough_statements(self, pagination_policy: PaginationPolicy, sql: str) -> None:
        """Test that SHOW, DESCRIBE and EXPLAIN are not rewritten."""
        assert _rewrite(sql, pagination_policy, dialect=Dialect.MYSQL) == sql


class TestRewriteSqlServer:
    """Tests for TOP / OFFSET-FETCH rewriting."""

    def test_top_injected(self, pagination_policy: PaginationPolicy) -> None:
        """Test that first pages use TOP."""
        sql = _rewrite("SELECT * FROM t", pagination_policy, dialect=Dialect.SQLSERVER)
        assert sql == "SELECT TOP 50 * FROM t"

    def test_top_after_distinct(self, pagination_policy: PaginationPolicy) -> None:
        """Test that TOP follows DISTINCT."""
        sql = _rewrite("SELECT DISTINCT a FROM t", pagination_policy, dialect=Dialect.SQLSERVER)
        assert sql == "SELECT DISTINCT TOP 50 a FROM t"

    def test_existing_top_clamped(self, pagination_policy: PaginationPolicy) -> None:
        """Test that an existing TOP is clamped, not duplicated."""
        sql = _rewrite(
            "SELECT TOP 5000 * FROM t", pagination_policy, limit=100, dialect=Dialect.SQLSERVER
        )
        assert sql == "SELECT TOP 100 * FROM t"

    def test_offset_fetch(self, pagination_policy: PaginationPolicy) -> None:
        """Test that later pages use OFFSET/FETCH with a neutral ORDER BY."""
        sql = _rewrite("SELECT * FROM t", pagination_policy, offset=20, dialect=Dialect.SQLSERVER)
        assert sql == (
            "SELECT * FROM t ORDER BY (SELECT NULL) OFFSET 20 ROWS FETCH NEXT 50 ROWS ONLY"
        )

    def test_offset_fetch_keeps_order_by(self, pagination_policy: PaginationPolicy) -> None:
        """Test that an existing ORDER BY is reused."""
        sql = _rewrite(
            "SELECT * FROM t ORDER BY id", pagination_policy, offset=20, dialect=Dialect.SQLSERVER
        )
        assert sql == "SELECT * FROM t ORDER BY id OFFSET 20 ROWS FETCH NEXT 50 ROWS ONLY"

    @pytest.mark.parametrize("offset", [0, 20])
    def test_idempotent(self, pagination_policy: PaginationPolicy, offset: int) -> None:
        """Test that SQL Server rewriting is idempotent."""
        once = _rewrite(
            "SELECT * FROM t", pagination_policy, offset=offset, dialect=Dialect.SQLSERVER
        )
        twice = _rewrite(once, pagination_policy, offset=offset, dialect=Dialect.SQLSERVER)
        assert twice == once


class TestTrailingQuotedTokens:
    """Tests for statements that end in a literal or quoted identifier."""

    @pytest.mark.parametrize(
        "dialect,sql,expected",
        [
            (
                Dialect.POSTGRES,
                "SELECT * FROM users WHERE name = 'bob'",
                "SELECT * FROM users WHERE name = 'bob' LIMIT 50 OFFSET 0",
            ),
            (
                Dialect.POSTGRES,
                "SELECT * FROM users WHERE name = 'bob';",
                "SELECT * FROM users WHERE name = 'bob' LIMIT 50 OFFSET 0",
            ),
            (
                Dialect.POSTGRES,
                'SELECT * FROM "users"',
                'SELECT * FROM "users" LIMIT 50 OFFSET 0',
            ),
            (Dialect.POSTGRES, 'SELECT 1 "x";', 'SELECT 1 "x" LIMIT 50 OFFSET 0'),
            (Dialect.POSTGRES, "SELECT $$a$$", "SELECT $$a$$ LIMIT 50 OFFSET 0"),
            (
                Dialect.MYSQL,
                "SELECT * FROM `users`",
                "SELECT * FROM `users` LIMIT 50 OFFSET 0",
            ),
            (
                Dialect.MYSQL,
                "SELECT * FROM users WHERE name = 'bob';",
                "SELECT * FROM users WHERE name = 'bob' LIMIT 50 OFFSET 0",
            ),
            (
                Dialect.SQLITE,
                "SELECT * FROM users WHERE name = 'bob'",
                "SELECT * FROM users WHERE name = 'bob' LIMIT 50 OFFSET 0",
            ),
            (
                Dialect.SQLITE,
                'SELECT * FROM "users";',
                'SELECT * FROM "users" LIMIT 50 OFFSET 0',
            ),
            (
                Dialect.SQLSERVER,
                "SELECT * FROM [users] WHERE name = 'bob';",
                "SELECT TOP 50 * FROM [users] WHERE name = 'bob'",
            ),
        ],
    )
    def test_clause_goes_after_token(
        self, pagination_policy: PaginationPolicy, dialect: Dialect, sql: str, expected: str
    ) -> None:
        """Test that the trailing token stays inside the statement."""
        assert _rewrite(sql, pagination_policy, dialect=dialect) == expected

    def test_sqlserver_bracket_identifier_with_offset(
        self, pagination_policy: PaginationPolicy
    ) -> None:
        """Test OFFSET/FETCH after a bracketed table name holding keywords."""
        sql = _rewrite(
            "SELECT * FROM [LIMIT 5]", pagination_policy, offset=100, dialect=Dialect.SQLSERVER
        )
        assert sql == (
            "SELECT * FROM [LIMIT 5] ORDER BY (SELECT NULL) OFFSET 100 ROWS FETCH NEXT 50 ROWS ONLY"
        )

    def test_literal_then_comment(self, pagination_policy: PaginationPolicy) -> None:
        """Test that a comment after a trailing literal stays after the clause."""
        sql = _rewrite("SELECT * FROM t WHERE a = 'x' -- note", pagination_policy)
        assert sql == "SELECT * FROM t WHERE a = 'x' LIMIT 50 OFFSET 0 -- note"

    def test_idempotent(self, pagination_policy: PaginationPolicy) -> None:
        """Test that rewriting twice keeps a single clause."""
        once = _rewrite("SELECT * FROM users WHERE name = 'bob';", pagination_policy, offset=10)
        assert _rewrite(once, pagination_policy, offset=10) == once


class TestUnboundedAndFetchLimits:
    """Tests for LIMIT -1 and FETCH FIRST in LIMIT dialects."""

    def test_sqlite_negative_limit_clamped(self, pagination_policy: PaginationPolicy) -> None:
        """Test that SQLite's LIMIT -1 becomes the page size."""
        sql = _rewrite("SELECT * FROM t LIMIT -1", pagination_policy, dialect=Dialect.SQLITE)

        assert sql == "SELECT * FROM t LIMIT 50"
        assert validate_sql(sql, "sqlite").is_valid

    def test_sqlite_negative_limit_with_offset(self, pagination_policy: PaginationPolicy) -> None:
        """Test that the user's OFFSET survives clamping LIMIT -1."""
        sql = _rewrite(
            "SELECT * FROM t LIMIT -1 OFFSET 10", pagination_policy, dialect=Dialect.SQLITE
        )
        assert sql == "SELECT * FROM t LIMIT 50 OFFSET 10"

    def test_fetch_first_kept(self, pagination_policy: PaginationPolicy) -> None:
        """Test that a small FETCH FIRST bounds the query on its own."""
        original = "SELECT * FROM t ORDER BY id FETCH FIRST 10 ROWS ONLY"
        sql = _rewrite(original, pagination_policy)

        assert sql == original
        assert "LIMIT" not in sql.upper()
        assert validate_sql(sql, "postgres").is_valid

    def test_fetch_first_clamped(self, pagination_policy: PaginationPolicy) -> None:
        """Test that a large FETCH FIRST is lowered to the page size."""
        sql = _rewrite(
            "SELECT * FROM t ORDER BY id FETCH FIRST 5000 ROWS ONLY", pagination_policy, limit=100
        )
        assert sql == "SELECT * FROM t ORDER BY id FETCH FIRST 100 ROWS ONLY"

    def test_fetch_first_row_only(self, pagination_policy: PaginationPolicy) -> None:
        """Test that FETCH FIRST ROW ONLY is left alone."""
        original = "SELECT * FROM t FETCH FIRST ROW ONLY"
        assert _rewrite(original, pagination_policy) == original

    def test_fetch_first_gets_offset(self, pagination_policy: PaginationPolicy) -> None:
        """Test that a requested offset goes in front of FETCH, once."""
        once = _rewrite(
            "SELECT * FROM t ORDER BY id FETCH FIRST 10 ROWS ONLY", pagination_policy, offset=20
        )

        assert once == "SELECT * FROM t ORDER BY id OFFSET 20 ROWS FETCH FIRST 10 ROWS ONLY"
        assert _rewrite(once, pagination_policy, offset=20) == once


class TestPageHelpers:
    """Tests for page-number helpers."""

    @pytest.mark.parametrize(
        "page,page_size,expected",
        [(1, 20, 0), (2, 20, 20), (5, 10, 40)],
    )
    def test_calculate_offset(self, page: int, page_size: int, expected: int) -> None:
        """Test offset arithmetic."""
        assert calculate_offset(page, page_size) == expected

    def test_build_sql_pagination(self, pagination_policy: PaginationPolicy) -> None:
        """Test page/page size to limit/offset conversion."""
        directive = build_sql_pagination(3, 25, pagination_policy)
        assert directive.limit == 25
        assert directive.offset == 50

    def test_build_sql_pagination_defaults(self, pagination_policy: PaginationPolicy) -> None:
        """Test that missing values use page 1 and the default size."""
        directive = build_sql_pagination(None, None, pagination_policy)
        assert directive.limit == 50
        assert directive.offset == 0

        clamped = build_sql_pagination(0, 5000, pagination_policy)
        assert clamped.limit == 1000
        assert clamped.offset == 0

    def test_create_pagination_meta(self) -> None:
        """Test page metadata for a known total."""
        meta = create_pagination_meta(page=2, page_size=10, total_rows=25)

        assert meta.total_pages == 3
        assert meta.has_next is True
        assert meta.has_previous is True

    def test_create_pagination_meta_last_page(self) -> None:
        """Test the last and only page."""
        meta = create_pagination_meta(page=1, page_size=10, total_rows=10)

        assert meta.total_pages == 1
        assert meta.has_next is False
        assert meta.has_previous is False
        assert meta.model_dump(by_alias=True)["totalRows"] == 10
